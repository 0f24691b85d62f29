"""Message, media and template operations over the retrying client."""

from wacloud.services.media import MediaService
from wacloud.services.messages import MessageService
from wacloud.services.templates import TemplateService
from wacloud.services.validators import InvalidRequestError

__all__ = [
    "InvalidRequestError",
    "MediaService",
    "MessageService",
    "TemplateService",
]
