"""Custom exceptions for ccloud."""


class CCloudError(Exception):
    """Base exception for all ccloud errors."""


class ConfigurationError(CCloudError):
    """Configuration-related errors."""


class OAuthTokenError(CCloudError):
    """External OAuth or STS token exchange failed."""


class PaginationError(CCloudError):
    """A list endpoint returned an unusable next-page cursor."""


class PrincipalResolutionError(CCloudError):
    """A principal could not be translated between ID formats."""


class AclFormatError(CCloudError):
    """A serialized Kafka ACL could not be parsed."""


class UploadError(CCloudError):
    """Uploading an artifact or plugin archive failed."""
