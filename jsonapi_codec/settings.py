"""Environment-driven defaults for the codec configuration."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from .config import AffordanceType, JSONAPIConfiguration


class CodecSettings(BaseSettings):
    """Codec settings loaded from environment variables with JSONAPI_ prefix."""

    pluralized_type_rendered: bool = True
    lowercased_type_rendered: bool = True
    id_not_serialized_for_value: str | None = None
    id_attribute_rendered: bool = False
    empty_attributes_object_serialized: bool = True
    page_meta_automatically_created: bool = True
    pagination_links_automatically_created: bool = True
    page_number_request_parameter: str = "page[number]"
    page_size_request_parameter: str = "page[size]"
    affordances_rendered_as: AffordanceType = AffordanceType.NONE
    jsonapi_version_rendered: bool = False
    jsonapi11_link_properties_removed_from_link_meta: bool = True
    type_used_for_deserialization: bool = True

    model_config = SettingsConfigDict(env_prefix="JSONAPI_", env_file=".env")

    def to_configuration(self) -> JSONAPIConfiguration:
        """Build an immutable codec configuration from these settings."""
        values = self.model_dump(exclude={"id_not_serialized_for_value"})
        sentinel = self.id_not_serialized_for_value
        return JSONAPIConfiguration(
            **values,
            id_not_serialized_for_value={"*": sentinel} if sentinel is not None else {},
        )


@lru_cache
def get_settings() -> CodecSettings:
    """Return cached codec settings instance."""
    return CodecSettings()
