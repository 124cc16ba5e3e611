"""
Configuration Management

Handles loading and managing configuration files for the ImageSet Manager tool.
"""

import logging
from io import StringIO
from pathlib import Path
from typing import Dict, Any

import yaml
from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap

from .exceptions import ConfigurationError
from .constants import CatalogConstants, ImageSetConstants, FileConstants

logger = logging.getLogger(__name__)


class ConfigManager:
    """Manages configuration loading and validation"""

    # Configuration schema - defines expected structure and types
    CONFIG_SCHEMA = {
        'catalog': {
            'type': dict,
            'required': False,
            'fields': {
                'name': {'type': str, 'required': False},
                'version': {'type': str, 'required': False},
                'registry': {'type': str, 'required': False},
                'directory': {'type': str, 'required': False}
            }
        },
        'imageset': {
            'type': dict,
            'required': False,
            'fields': {
                'apiVersion': {
                    'type': str, 'required': False,
                    'choices': ImageSetConstants.get_supported_api_versions()
                }
            }
        },
        'output': {
            'type': dict,
            'required': False,
            'fields': {
                'path': {'type': str, 'required': False}
            }
        },
        'global': {
            'type': dict,
            'required': False,
            'fields': {
                'debug': {'type': bool, 'required': False},
                'skip_tls': {'type': bool, 'required': False},
                'cache_dir': {'type': str, 'required': False},
                'cache_ttl': {'type': int, 'required': False}
            }
        },
    }

    def __init__(self):
        """Initialize configuration manager"""
        self.config_data = {}
        self.config_file_path = None

    def load_config(self, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from YAML file

        Args:
            config_path: Path to configuration file

        Returns:
            Dict containing configuration data

        Raises:
            ConfigurationError: If configuration file cannot be loaded or is invalid
        """
        config_file = Path(config_path)

        if not config_file.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        if not config_file.is_file():
            raise ConfigurationError(f"Configuration path is not a file: {config_path}")

        try:
            with open(config_file, 'r') as f:
                self.config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file {config_path}: {e}")
        except OSError as e:
            raise ConfigurationError(f"Failed to load configuration from {config_path}: {e}")

        self.config_file_path = config_path
        logger.info(f"Successfully loaded configuration from {config_path}")

        self._validate_config()

        return self.config_data

    def _validate_config(self) -> None:
        """
        Validate configuration structure and values

        Raises:
            ConfigurationError: If configuration is invalid
        """
        if not isinstance(self.config_data, dict):
            raise ConfigurationError("Configuration must be a dictionary")

        self._validate_against_schema(self.config_data, self.CONFIG_SCHEMA, "config")

    def _validate_against_schema(self, data: Dict[str, Any], schema: Dict[str, Any], path: str = "") -> None:
        """
        Validate data against schema definition

        Args:
            data: Data to validate
            schema: Schema definition
            path: Current path for error reporting

        Raises:
            ConfigurationError: If data doesn't match schema
        """
        for key, field_schema in schema.items():
            current_path = f"{path}.{key}" if path else key

            if key in data:
                value = data[key]

                # Skip None values for optional fields
                if value is None and not field_schema.get('required', False):
                    continue

                expected_type = field_schema['type']
                # bool is an int subclass; keep them apart
                if not isinstance(value, expected_type) or (expected_type is int and isinstance(value, bool)):
                    type_name = expected_type.__name__
                    raise ConfigurationError(f"{current_path} must be a {type_name}")

                if 'choices' in field_schema:
                    if value not in field_schema['choices']:
                        choices_str = ', '.join(f"'{c}'" for c in field_schema['choices'])
                        raise ConfigurationError(f"{current_path} must be one of: {choices_str}")

                if expected_type == dict and 'fields' in field_schema:
                    self._validate_against_schema(value, field_schema['fields'], current_path)

            elif field_schema.get('required', False):
                raise ConfigurationError(f"Required field {current_path} is missing")

    def _write_config_file(self, content: str, output_dir: str = None) -> str:
        """
        Helper method to write configuration content to file

        Args:
            content: YAML content to write
            output_dir: Directory to save file (optional)

        Returns:
            str: Path to written file

        Raises:
            ConfigurationError: If file writing fails
        """
        try:
            if output_dir:
                output_path = Path(output_dir)
                output_path.mkdir(parents=True, exist_ok=True)
                config_file = output_path / FileConstants.DEFAULT_CONFIG_FILE
            else:
                config_file = Path(FileConstants.DEFAULT_CONFIG_FILE)

            with open(config_file, 'w') as f:
                f.write(content)

            logger.info(f"Configuration file written: {config_file}")
            return str(config_file)

        except OSError as e:
            raise ConfigurationError(f"Failed to write configuration file: {e}")

    def get_config_template_content(self) -> str:
        """
        Generate configuration template content as string without file I/O

        Returns:
            str: YAML configuration template content
        """
        yaml_processor = YAML()
        yaml_processor.width = 4096
        yaml_processor.indent(mapping=2, sequence=4, offset=2)

        catalog = CommentedMap()
        catalog['name'] = CatalogConstants.KnownCatalog.REDHAT.value
        catalog['version'] = "v4.18"
        catalog['registry'] = CatalogConstants.DEFAULT_REGISTRY
        catalog.yaml_add_eol_comment("or point at an extracted configs directory with 'directory'", 'registry')

        imageset = CommentedMap()
        imageset['apiVersion'] = ImageSetConstants.DEFAULT_API_VERSION

        output = CommentedMap()
        output['path'] = "./output"

        global_section = CommentedMap()
        global_section['debug'] = False
        global_section['skip_tls'] = False
        global_section['cache_ttl'] = FileConstants.CACHE_TTL

        template = CommentedMap()
        template['catalog'] = catalog
        template['imageset'] = imageset
        template['output'] = output
        template['global'] = global_section
        template.yaml_set_start_comment(
            "ImageSet Manager Configuration File\n"
            "Template for discovering catalogs and generating ImageSetConfigurations"
        )

        stream = StringIO()
        yaml_processor.dump(template, stream)
        return stream.getvalue()

    def generate_config_template(self, output_dir: str = None) -> str:
        """
        Generate configuration template file

        Args:
            output_dir: Directory to save template (optional)

        Returns:
            str: Path to generated template file
        """
        return self._write_config_file(self.get_config_template_content(), output_dir)
