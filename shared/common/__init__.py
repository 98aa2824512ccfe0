# Shared helpers for the learning platform services: request authentication,
# role permissions, the API error envelope, request middleware and model
# mixins. Import from the submodules directly, e.g.
# `from shared.common.authentication import JWTAuthentication`.

__version__ = "1.0.0"
