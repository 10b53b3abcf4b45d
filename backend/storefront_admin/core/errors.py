"""
Error taxonomy for the Storefront Admin backend

Services raise these; a single exception handler in main.py renders them as
JSON bodies with a ``message`` field (and ``error`` outside production).
"""
from typing import Optional


class StorefrontAdminError(Exception):
    """Base error carrying the HTTP status and a machine readable kind"""

    status_code: int = 500
    kind: str = "internal_error"

    def __init__(self, message: str, detail: Optional[str] = None, **extra):
        super().__init__(message)
        self.message = message
        self.detail = detail
        self.extra = extra

    def to_dict(self, include_detail: bool = True) -> dict:
        body = {"message": self.message, "kind": self.kind}
        if include_detail and self.detail:
            body["error"] = self.detail
        body.update(self.extra)
        return body


class ShopifyAPIError(StorefrontAdminError):
    """Any transport error or non-2xx answer from the Shopify Admin API"""

    status_code = 502
    kind = "upstream_error"

    def __init__(self, message: str, status: Optional[int] = None, detail: Optional[str] = None):
        super().__init__(message, detail=detail)
        self.status = status

    @property
    def is_not_found(self) -> bool:
        return self.status == 404


class UpstreamSyncError(StorefrontAdminError):
    """Local write was compensated after the remote mirror failed"""

    status_code = 502
    kind = "upstream_sync_failed"


class PartialSyncError(StorefrontAdminError):
    """Remote mirror failed AND the compensating local action failed too"""

    status_code = 500
    kind = "partially_synced"


class ExternalIdNotStored(StorefrontAdminError):
    """Shopify created the product but its ID could not be written locally"""

    status_code = 500
    kind = "partially_synced"

    def __init__(self, message: str, external_id: str, detail: Optional[str] = None):
        super().__init__(message, detail=detail, external_id=external_id)
        self.external_id = external_id


class IntegrationError(StorefrontAdminError):
    """Email, SMS, image host or text-generation provider failure"""

    status_code = 502
    kind = "upstream_error"


class IntegrationNotConfigured(StorefrontAdminError):
    status_code = 503
    kind = "not_configured"


class UploadRejected(StorefrontAdminError):
    status_code = 400
    kind = "validation_error"
