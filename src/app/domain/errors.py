from __future__ import annotations


class RecipeBoxError(Exception):
    pass


class ValidationError(RecipeBoxError):
    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class NotFoundError(RecipeBoxError):
    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(RecipeBoxError):
    pass


class AlreadyPromotedError(ConflictError):
    def __init__(self, recommendation_id: str):
        super().__init__(f"Recommendation already promoted: {recommendation_id}")
        self.recommendation_id = recommendation_id


class DuplicateItemError(ConflictError):
    def __init__(self, collection_id: str, item_id: str):
        super().__init__(f"Item {item_id} is already in collection {collection_id}")
        self.collection_id = collection_id
        self.item_id = item_id


class UnauthorizedError(RecipeBoxError):
    def __init__(self, message: str = "No token provided"):
        super().__init__(message)


class ForbiddenError(RecipeBoxError):
    def __init__(self, message: str = "Unauthorized access"):
        super().__init__(message)


class IdentityProviderError(RecipeBoxError):
    def __init__(self, reason: str):
        super().__init__(f"Identity provider unavailable: {reason}")
        self.reason = reason


class MetadataUnavailableError(RecipeBoxError):
    def __init__(self, url: str, reason: str | None = None):
        super().__init__(f"Failed to extract metadata from {url}")
        self.url = url
        self.reason = reason


class RepositoryError(RecipeBoxError):
    def __init__(self, operation: str, reason: str):
        super().__init__(f"Repository error during {operation}: {reason}")
        self.operation = operation
        self.reason = reason
