"""JSON:API wire serializer and deserializer."""

from .base import JSONAPISerializer
from .deserializer import JSONAPIDeserializer, ParsedDocument

__all__ = ["JSONAPIDeserializer", "JSONAPISerializer", "ParsedDocument"]
