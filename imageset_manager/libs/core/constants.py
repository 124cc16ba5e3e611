"""
Constants Module

Centralized constants for the ImageSet Manager tool to eliminate magic strings
and improve maintainability.
"""

from enum import Enum


class BaseStrEnum(str, Enum):
    """Base enum class that inherits from str"""

    def __str__(self) -> str:
        """Return the enum value as string"""
        return self.value

    def __repr__(self) -> str:
        """Return a detailed representation of the enum"""
        return f"{self.__class__.__name__}.{self.name}"


class CatalogConstants:
    """File-Based Catalog constants"""

    # Directory inside catalog images holding the FBC tree
    CONFIGS_DIR = "configs"
    CONFIGS_PATH_IN_IMAGE = "/configs"

    # Registry that hosts the Red Hat catalog indexes
    DEFAULT_REGISTRY = "registry.redhat.io/redhat"

    class Schema(BaseStrEnum):
        """FBC schema discriminators"""
        PACKAGE = "olm.package"
        CHANNEL = "olm.channel"
        BUNDLE = "olm.bundle"

    class PropertyType(BaseStrEnum):
        """Bundle property types"""
        PACKAGE = "olm.package"
        GVK = "olm.gvk"
        BUNDLE_OBJECT = "olm.bundle.object"

    class KnownCatalog(BaseStrEnum):
        """Catalog indexes published under the default registry"""
        REDHAT = "redhat-operator-index"
        CERTIFIED = "certified-operator-index"
        COMMUNITY = "community-operator-index"
        MARKETPLACE = "redhat-marketplace-index"

        @classmethod
        def names(cls) -> list:
            """Get all known catalog names"""
            return [member.value for member in cls]


class ImageSetConstants:
    """ImageSetConfiguration document constants"""

    KIND = "ImageSetConfiguration"
    API_VERSION_V2 = "mirror.openshift.io/v2alpha1"
    API_VERSION_V1 = "mirror.openshift.io/v1alpha2"
    DEFAULT_API_VERSION = API_VERSION_V2

    DEFAULT_FILENAME = "imageset-config.yaml"
    UPDATED_SUFFIX = "updated"

    @classmethod
    def get_supported_api_versions(cls) -> list:
        """Get apiVersions the parser accepts without warning"""
        return [cls.API_VERSION_V2, cls.API_VERSION_V1]

    class Field(BaseStrEnum):
        """Field names used inside ImageSetConfiguration documents"""
        API_VERSION = "apiVersion"
        KIND = "kind"
        MIRROR = "mirror"
        OPERATORS = "operators"
        CATALOG = "catalog"
        PACKAGES = "packages"
        NAME = "name"
        CHANNELS = "channels"
        MIN_VERSION = "minVersion"
        MAX_VERSION = "maxVersion"
        DEFAULT_CHANNEL = "defaultChannel"


class NetworkConstants:
    """Timeouts for external commands"""

    DEFAULT_TIMEOUT = 30
    IMAGE_PULL_TIMEOUT = 900
    IMAGE_COPY_TIMEOUT = 300


class FileConstants:
    """File and directory related constants"""

    DEFAULT_CONFIG_FILE = "imageset-manager-config.yaml"
    CACHE_DIR_NAME = "imageset-manager-cache"
    CACHE_TTL = 24 * 60 * 60
    TEMP_DIR_PREFIX = "catalog-extract-"

    class FileExtension(BaseStrEnum):
        """File extensions found in catalogs and configurations"""
        YAML = ".yaml"
        YML = ".yml"
        JSON = ".json"

        @classmethod
        def get_yaml_extensions(cls) -> list:
            """Get extensions decoded as YAML"""
            return [cls.YAML, cls.YML]

        @classmethod
        def get_catalog_extensions(cls) -> list:
            """Get every extension the catalog decoder reads"""
            return [cls.YAML, cls.YML, cls.JSON]


class ErrorMessages:
    """Centralized error message templates"""

    class FetchError(BaseStrEnum):
        """Image fetch error message templates"""
        PODMAN_NOT_FOUND = (
            "podman binary not found. Please install podman and ensure it's in your PATH, "
            "or point --catalog-dir at an already extracted catalog."
        )
        PULL_FAILED = "Failed to pull image {image}: {error}"
        CREATE_FAILED = "Failed to create container from {image}: {error}"
        COPY_FAILED = "Failed to extract {path} from {image}: {error}"
        TIMEOUT = "podman {action} timed out after {timeout}s for image: {image}"

    class CatalogError(BaseStrEnum):
        """Catalog lookup error message templates"""
        UNKNOWN_CATALOG = (
            "Invalid catalog '{catalog}'. Must be one of: {catalogs}"
        )
        CONFIGS_NOT_FOUND = "No catalog configs directory found at: {path}"
        MISSING_CATALOG_SOURCE = (
            "No catalog source specified. Use --catalog-dir, or --catalog together with --version."
        )

    class ConfigError(BaseStrEnum):
        """Configuration-related error message templates"""
        INVALID_IMAGE_URL = "Invalid container image URL format: {image}"
        CONFIG_FILE_NOT_FOUND = "Configuration file not found: {config_path}"
        INVALID_SELECTION = (
            "Invalid selection '{selection}'. Expected OPERATOR:CHANNEL:VERSION"
        )
        INVALID_ASSIGNMENT = "Invalid value '{value}'. Expected OPERATOR=VALUE"

    class ImageSetError(BaseStrEnum):
        """ImageSetConfiguration error message templates"""
        NOT_A_MAPPING = "ImageSetConfiguration must be a YAML mapping"
        INVALID_YAML = "Invalid YAML in ImageSetConfiguration: {error}"
        WRONG_KIND = "Expected kind '{expected}', found '{found}'"
        NO_OPERATORS = "ImageSetConfiguration has no mirror.operators entries"
        NO_PACKAGES = "ImageSetConfiguration has no package entries"
        PACKAGE_WITHOUT_NAME = "Package entry #{index} has no name"
