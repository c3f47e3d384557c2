"""
Error taxonomy for the shop chat.

Only the chat service and the HTTP route decide what a customer sees;
everything below them raises one of these.
"""


class ShopChatError(Exception):
    """Base class for all shop chat errors."""


class InvalidRequest(ShopChatError):
    """The chat request carried no usable message."""


class UpstreamFetchFailure(ShopChatError):
    """The catalog source could not be queried or returned unusable data."""


class CatalogUnavailable(ShopChatError):
    """No product data has ever been obtained, so there is nothing to serve."""


class ModelError(ShopChatError):
    """Base class for language-model call failures."""


class ModelOverloaded(ModelError):
    """The language model rejected the call for capacity reasons."""


class ModelFailure(ModelError):
    """Any other language-model failure."""
