"""
Main Application

Orchestrates the catalog, registry and imageset libraries behind the
command-line interface.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

# Core libraries
from .core import ConfigManager, setup_logging
from .core.constants import CatalogConstants, ErrorMessages, FileConstants, ImageSetConstants
from .core.exceptions import (
    CatalogError, ChannelNotFoundError, ConfigurationError, ImageSetManagerError,
    OperatorNotFoundError, VersionNotFoundError
)
from .core.protocols import CatalogCacheProvider, CatalogFetcher, ConfigProvider, HelpProvider
from .core.utils import build_catalog_reference

# Catalog libraries
from .catalog import CatalogService, default_latest, latest

# Registry libraries
from .registry import CatalogCache, LocalCatalogFetcher, PodmanClient

# ImageSet libraries
from .imageset import (
    DefaultChannelAction, ImageSetParser, ImageSetReconciler, ImageSetSynthesizer,
    OperatorAction, ReconcileResult, Selection, read_document
)

from .help_manager import HelpManager

logger = logging.getLogger(__name__)


class ImageSetManager:
    """Main application orchestrator for the ImageSet Manager tool"""

    def __init__(
        self,
        config_provider: Optional[ConfigProvider] = None,
        help_provider: Optional[HelpProvider] = None,
        fetcher: Optional[CatalogFetcher] = None,
        cache: Optional[CatalogCacheProvider] = None,
        api_version: str = ImageSetConstants.DEFAULT_API_VERSION,
        registry: str = CatalogConstants.DEFAULT_REGISTRY,
        skip_tls: bool = False,
        debug: bool = False
    ):
        """
        Initialize ImageSet Manager with dependency injection

        Args:
            config_provider: Configuration provider (defaults to ConfigManager)
            help_provider: Help manager (defaults to HelpManager)
            fetcher: Catalog image fetcher (defaults to PodmanClient)
            cache: Extracted catalog cache (optional)
            api_version: apiVersion for generated documents
            registry: Registry prefix for known catalogs
            skip_tls: Whether to skip TLS verification on image pulls
            debug: Enable debug logging
        """
        self.skip_tls = skip_tls
        self.debug = debug
        self.registry = registry

        self.config_manager = config_provider or ConfigManager()
        self.help_manager = help_provider or HelpManager()
        self.fetcher = fetcher or PodmanClient(skip_tls=skip_tls)
        self.cache = cache

        self.synthesizer = ImageSetSynthesizer(api_version=api_version)
        self.parser = ImageSetParser()
        self.reconciler = ImageSetReconciler(self.parser)

        # Configured by open_catalog
        self.catalog_service: Optional[CatalogService] = None
        self.catalog_name: Optional[str] = None
        self.catalog_version: Optional[str] = None

    def load_config(self, config_path: str) -> Dict[str, Any]:
        """Load the tool configuration file"""
        return self.config_manager.load_config(config_path)

    def generate_config(self, output_dir: str = None) -> str:
        """Write a configuration template and return its path"""
        return self.config_manager.generate_config_template(output_dir)

    def open_catalog(self, catalog: str = None, version: str = None, catalog_dir: str = None) -> Path:
        """
        Make catalog data available for the following operations

        A local directory wins over catalog+version; the latter goes through
        the cache and the image fetcher.

        Returns:
            Path: Directory holding the catalog's operators

        Raises:
            CatalogError: If no usable catalog source was given
            FetchError: If the catalog image cannot be fetched
        """
        self.catalog_name = catalog
        self.catalog_version = version

        if catalog_dir:
            local = LocalCatalogFetcher(catalog_dir)
            self.catalog_service = CatalogService(fetcher=local, registry=self.registry)
            return self.catalog_service.use_directory(local.fetch_catalog_files())

        if not (catalog and version):
            raise CatalogError(str(ErrorMessages.CatalogError.MISSING_CATALOG_SOURCE))

        self.catalog_service = CatalogService(
            fetcher=self.fetcher, cache=self.cache, registry=self.registry
        )
        return self.catalog_service.resolve_catalog_dir(catalog, version)

    def _require_service(self) -> CatalogService:
        if self.catalog_service is None:
            raise CatalogError(str(ErrorMessages.CatalogError.MISSING_CATALOG_SOURCE))
        return self.catalog_service

    def catalog_reference(self) -> str:
        """Image reference of the open catalog"""
        if not (self.catalog_name and self.catalog_version):
            raise CatalogError(
                "Generating a configuration needs --catalog and --version to name the catalog image"
            )
        return build_catalog_reference(self.catalog_name, self.catalog_version, self.registry)

    def list_operators(self) -> Dict[str, Any]:
        """Operators of the open catalog"""
        operators = self._require_service().list_operators()
        return {
            'catalog': self.catalog_name,
            'version': self.catalog_version,
            'operators': operators,
            'total': len(operators)
        }

    def operator_details(self, operator: str) -> Dict[str, Any]:
        """
        Channels and versions of one operator

        Raises:
            OperatorNotFoundError: If the catalog has no data for the operator
        """
        graph = self._require_service().get_operator_graph(operator)
        if graph is None:
            raise OperatorNotFoundError(operator)

        details = {'name': operator}
        details.update(graph.to_dict())
        return details

    def resolve_selection(self, operator: str, channel: str = None, version: str = None) -> Selection:
        """
        Complete a user selection from catalog data

        A missing channel means the default channel; a missing version means
        the channel's latest.

        Raises:
            OperatorNotFoundError, ChannelNotFoundError, VersionNotFoundError
        """
        graph = self._require_service().get_operator_graph(operator)
        if graph is None:
            raise OperatorNotFoundError(operator)

        channel = channel or graph.default_channel
        channel_data = graph.get_channel(channel)
        if channel_data is None:
            raise ChannelNotFoundError(operator, channel or '', graph.channel_names())

        if version and version not in channel_data.versions:
            raise VersionNotFoundError(operator, channel, version)

        if not graph.has_explicit_default:
            logger.warning(
                f"Operator '{operator}' declares no default channel; "
                f"assuming '{graph.default_channel}'"
            )

        return Selection(
            operator=operator,
            channel=channel,
            version=version or latest(graph, channel),
            default_channel=graph.default_channel,
            default_channel_version=default_latest(graph)
        )

    def generate(self, requests: List[tuple]) -> Dict[str, Any]:
        """
        Build an ImageSetConfiguration for (operator, channel, version) requests

        Returns:
            Dict with the rendered 'yaml' and a suggested 'filename'
        """
        selections = [self.resolve_selection(*request) for request in requests]
        document = self.synthesizer.synthesize(self.catalog_reference(), selections)

        return {
            'document': document,
            'yaml': self.synthesizer.render(document),
            'filename': self.synthesizer.generate_filename(self.catalog_name, self.catalog_version)
        }

    def parse_file(self, path: str) -> Dict[str, Any]:
        """Parse an ImageSetConfiguration file into catalog and selections"""
        return self.parser.parse(read_document(path)).to_dict()

    def open_catalog_for_file(self, path: str, catalog_dir: str = None):
        """Parse a file and open the catalog it references (unless catalog_dir overrides it)"""
        parsed = self.parser.parse(read_document(path))
        if '/' in parsed.catalog_ref:
            self.registry = parsed.catalog_ref.rsplit('/', 1)[0]
        self.open_catalog(parsed.catalog_name, parsed.catalog_version, catalog_dir)
        return parsed

    def check_updates(self, path: str, catalog_dir: str = None) -> Dict[str, Any]:
        """Compare a file's configured versions with the catalog"""
        parsed = self.open_catalog_for_file(path, catalog_dir)
        graphs = self._require_service().get_operator_graphs(s.operator for s in parsed.selections)
        version_info = self.reconciler.compare_versions(parsed.selections, graphs)

        return {
            'catalog': parsed.catalog_name,
            'version': parsed.catalog_version,
            'versionInfo': [info.to_dict() for info in version_info]
        }

    def update(self, path: str, actions: Dict[str, OperatorAction], update_all: bool = False,
               default_channel_all: Optional[DefaultChannelAction] = None,
               catalog_dir: str = None) -> ReconcileResult:
        """
        Reconcile a file against the catalog

        Args:
            path: ImageSetConfiguration file
            actions: Per-operator actions
            update_all: Request a version update for every operator without an explicit action
            default_channel_all: Default-channel action for every operator without an explicit action
            catalog_dir: Local catalog overriding the one the file references

        Returns:
            ReconcileResult
        """
        parsed = self.open_catalog_for_file(path, catalog_dir)
        graphs = self._require_service().get_operator_graphs(s.operator for s in parsed.selections)

        merged = {}
        for selection in parsed.selections:
            action = actions.get(selection.operator)
            if action is None:
                action = OperatorAction(
                    update=update_all,
                    default_channel=default_channel_all or DefaultChannelAction.NONE
                )
            merged[selection.operator] = action

        unknown = sorted(set(actions) - set(merged))
        for name in unknown:
            logger.warning(f"Ignoring action for '{name}': not in {path}")

        return self.reconciler.reconcile(parsed.document, graphs, merged)

    def cache_stats(self) -> Dict[str, Any]:
        return self._require_cache().get_cache_stats()

    def clear_cache(self) -> int:
        return self._require_cache().clear_all()

    def _require_cache(self) -> CatalogCache:
        if self.cache is None:
            self.cache = CatalogCache()
        return self.cache


# Factory function for easy creation
def create_imageset_manager(skip_tls: bool = False, debug: bool = False, cache_dir: str = None,
                            cache_ttl: int = FileConstants.CACHE_TTL, use_cache: bool = True,
                            api_version: str = ImageSetConstants.DEFAULT_API_VERSION,
                            registry: str = CatalogConstants.DEFAULT_REGISTRY) -> ImageSetManager:
    """
    Factory function to create ImageSetManager with default dependencies

    Returns:
        ImageSetManager: Configured instance
    """
    cache = CatalogCache(cache_dir=cache_dir, ttl=cache_ttl) if use_cache else None
    return ImageSetManager(
        cache=cache, api_version=api_version, registry=registry, skip_tls=skip_tls, debug=debug
    )


def create_argument_parser():
    """
    Create and configure argument parser with subcommands.

    Uses parent parsers to share argument groups across commands.
    """

    # Common parser: arguments shared by ALL commands
    common_parser = argparse.ArgumentParser(add_help=False)
    common_parser.add_argument(
        '--debug', action='store_true', help='Enable debug logging'
    )
    common_parser.add_argument(
        '--examples', action='store_true',
        help='Show usage examples for this command'
    )
    common_parser.add_argument('--config', help='Configuration file path')

    # Catalog parser: arguments shared by commands that read catalog data
    catalog_parser = argparse.ArgumentParser(add_help=False)
    catalog_parser.add_argument(
        '--catalog', choices=CatalogConstants.KnownCatalog.names(),
        help='Catalog index name'
    )
    catalog_parser.add_argument('--version', help='Catalog version tag (e.g. v4.18)')
    catalog_parser.add_argument(
        '--catalog-dir', help='Already extracted catalog configs directory (skips podman)'
    )
    catalog_parser.add_argument('--registry', help='Registry prefix for catalog images')
    catalog_parser.add_argument(
        '--skip-tls', action='store_true',
        help='Skip TLS verification when pulling images'
    )
    catalog_parser.add_argument('--cache-dir', help='Directory for cached catalogs')
    catalog_parser.add_argument(
        '--no-cache', action='store_true', help='Always fetch the catalog image'
    )

    # File parser: commands that read an ImageSetConfiguration
    file_parser = argparse.ArgumentParser(add_help=False)
    file_parser.add_argument('--file', help='ImageSetConfiguration file')

    # Output parser: arguments shared by commands that generate output
    output_parser = argparse.ArgumentParser(add_help=False)
    output_parser.add_argument('--output', help='Output directory for generated files')

    # Main parser with custom help override
    parser = argparse.ArgumentParser(
        description=(
            'ImageSet Manager - Browse operator catalogs and maintain '
            'ImageSetConfiguration files'
        ),
        add_help=False
    )
    parser.add_argument(
        '-h', '--help',
        action='store_true',
        help='Show this help message and exit'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    subparsers.add_parser(
        'list-operators',
        parents=[common_parser, catalog_parser],
        help='List operators in a catalog',
        description='List the operator packages published in a catalog'
    )

    details_parser = subparsers.add_parser(
        'operator-details',
        parents=[common_parser, catalog_parser],
        help='Show channels and versions of an operator',
        description='Show the default channel, channels and versions of one operator'
    )
    details_parser.add_argument('--operator', help='Operator package name')

    generate_parser = subparsers.add_parser(
        'generate',
        parents=[common_parser, catalog_parser, output_parser],
        help='Generate an ImageSetConfiguration',
        description='Generate an ImageSetConfiguration from operator selections'
    )
    generate_parser.add_argument(
        '--select', action='append', default=[], metavar='OPERATOR[:CHANNEL[:VERSION]]',
        help='Operator to mirror (repeatable); channel and version default to the latest of the default channel'
    )
    generate_parser.add_argument(
        '--api-version', choices=ImageSetConstants.get_supported_api_versions(),
        help='apiVersion of the generated document'
    )

    subparsers.add_parser(
        'parse',
        parents=[common_parser, file_parser],
        help='Parse an ImageSetConfiguration',
        description='Show the catalog and operator selections of an ImageSetConfiguration'
    )

    subparsers.add_parser(
        'check-updates',
        parents=[common_parser, catalog_parser, file_parser],
        help='Check an ImageSetConfiguration for newer versions',
        description='Compare configured versions with the latest versions in the catalog'
    )

    update_parser = subparsers.add_parser(
        'update',
        parents=[common_parser, catalog_parser, file_parser, output_parser],
        help='Update an ImageSetConfiguration',
        description='Rewrite an ImageSetConfiguration against current catalog data'
    )
    update_parser.add_argument(
        '--update-all', action='store_true',
        help='Update every operator to the latest version of its channel'
    )
    update_parser.add_argument(
        '--update', action='append', default=[], metavar='OPERATOR[=VERSION]',
        help='Update one operator, optionally to a specific version (repeatable)'
    )
    update_parser.add_argument(
        '--replace-channel', action='append', default=[], metavar='OPERATOR=CHANNEL',
        help='Replace a channel that no longer exists (repeatable)'
    )
    update_parser.add_argument(
        '--default-channel', action='append', default=[], metavar='OPERATOR=ACTION',
        help='Default-channel handling for one operator: add, replace or none (repeatable)'
    )
    update_parser.add_argument(
        '--default-channel-all', choices=[a.value for a in DefaultChannelAction],
        help='Default-channel handling for every operator without its own setting'
    )
    update_parser.add_argument(
        '--remove', action='append', default=[], metavar='OPERATOR',
        help='Remove an operator from the configuration (repeatable)'
    )

    subparsers.add_parser(
        'generate-config',
        parents=[common_parser, output_parser],
        help='Generate configuration template',
        description='Generate a configuration template for this tool'
    )

    cache_parser = subparsers.add_parser(
        'cache',
        parents=[common_parser],
        help='Inspect or clear the catalog cache',
        description='Inspect or clear the cache of extracted catalogs'
    )
    cache_parser.add_argument('--cache-dir', help='Directory for cached catalogs')
    cache_parser.add_argument('--stats', action='store_true', help='Show cache statistics')
    cache_parser.add_argument('--clear', action='store_true', help='Remove all cached catalogs')

    return parser


def handle_examples(command_name: str) -> bool:
    """Show the examples of a command. Returns True if examples were shown."""
    HelpManager().show_examples(command_name)
    return True


def parse_selection(value: str) -> tuple:
    """
    Parse OPERATOR[:CHANNEL[:VERSION]]

    Raises:
        ConfigurationError: If the operator part is empty
    """
    parts = value.split(':', 2)
    operator = parts[0].strip()
    if not operator:
        raise ConfigurationError(str(ErrorMessages.ConfigError.INVALID_SELECTION).format(selection=value))

    channel = parts[1].strip() if len(parts) > 1 and parts[1].strip() else None
    version = parts[2].strip() if len(parts) > 2 and parts[2].strip() else None
    return operator, channel, version


def parse_assignment(value: str, value_required: bool = True) -> tuple:
    """
    Parse OPERATOR=VALUE

    Raises:
        ConfigurationError: If the operator is empty, or the value is missing when required
    """
    operator, _, assigned = value.partition('=')
    operator = operator.strip()
    assigned = assigned.strip() or None

    if not operator or (value_required and not assigned):
        raise ConfigurationError(str(ErrorMessages.ConfigError.INVALID_ASSIGNMENT).format(value=value))
    return operator, assigned


def build_operator_actions(args) -> Dict[str, OperatorAction]:
    """Collect per-operator actions from update command arguments"""
    fields: Dict[str, Dict[str, Any]] = {}

    for value in args.update:
        operator, version = parse_assignment(value, value_required=False)
        fields.setdefault(operator, {}).update(update=True, version=version)

    for value in args.replace_channel:
        operator, channel = parse_assignment(value)
        fields.setdefault(operator, {})['replace_channel'] = channel

    for value in args.default_channel:
        operator, choice = parse_assignment(value)
        try:
            fields.setdefault(operator, {})['default_channel'] = DefaultChannelAction(choice.lower())
        except ValueError:
            choices = ', '.join(a.value for a in DefaultChannelAction)
            raise ConfigurationError(f"Invalid default-channel action '{choice}'. Must be one of: {choices}")

    for operator in args.remove:
        fields.setdefault(operator.strip(), {})['remove'] = True

    actions = {}
    for operator, values in fields.items():
        values.setdefault('update', args.update_all)
        if 'default_channel' not in values and args.default_channel_all:
            values['default_channel'] = DefaultChannelAction(args.default_channel_all)
        actions[operator] = OperatorAction(**values)
    return actions


def merge_config_with_args(args, config):
    """
    Merge configuration file values with command-line arguments.

    Command-line values win; configuration fills attributes left unset.
    """
    if not config:
        return

    mapping = {
        ('catalog', 'name'): 'catalog',
        ('catalog', 'version'): 'version',
        ('catalog', 'registry'): 'registry',
        ('catalog', 'directory'): 'catalog_dir',
        ('imageset', 'apiVersion'): 'api_version',
        ('output', 'path'): 'output',
        ('global', 'debug'): 'debug',
        ('global', 'skip_tls'): 'skip_tls',
        ('global', 'cache_dir'): 'cache_dir',
        ('global', 'cache_ttl'): 'cache_ttl',
    }

    for (section, key), attribute in mapping.items():
        section_config = config.get(section) or {}
        value = section_config.get(key)
        if value is None:
            continue

        current_value = getattr(args, attribute, None)
        if current_value is None or current_value == '' or current_value is False:
            setattr(args, attribute, value)


def _print_json_output(data: Any) -> None:
    """Print JSON output"""
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _write_output(content: str, output_dir: str, filename: str) -> str:
    """Write generated content into the output directory"""
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)
    target = output_path / filename
    target.write_text(content, encoding='utf-8')
    logger.info(f"Output saved to: {target}")
    return str(target)


def _open_catalog_from_args(manager: ImageSetManager, args) -> None:
    manager.open_catalog(
        catalog=getattr(args, 'catalog', None),
        version=getattr(args, 'version', None),
        catalog_dir=getattr(args, 'catalog_dir', None)
    )


def _require_file(args, command: str) -> str:
    if not args.file:
        print(
            f"Error: --file is required. Use 'imageset-manager {command} --examples' "
            "to see usage examples.",
            file=sys.stderr
        )
        sys.exit(1)
    return args.file


def handle_list_operators_command(args, manager):
    """Handle list-operators command execution."""
    _open_catalog_from_args(manager, args)
    _print_json_output(manager.list_operators())


def handle_operator_details_command(args, manager):
    """Handle operator-details command execution."""
    if not args.operator:
        print("Error: --operator is required for operator-details", file=sys.stderr)
        sys.exit(1)

    _open_catalog_from_args(manager, args)
    _print_json_output(manager.operator_details(args.operator))


def handle_generate_command(args, manager):
    """Handle generate command execution."""
    if not args.select:
        print(
            "Error: at least one --select is required. "
            "Use 'imageset-manager generate --examples' to see usage examples.",
            file=sys.stderr
        )
        sys.exit(1)

    requests = [parse_selection(value) for value in args.select]
    _open_catalog_from_args(manager, args)
    result = manager.generate(requests)

    if args.output:
        path = _write_output(result['yaml'], args.output, result['filename'])
        print(f"✓ ImageSetConfiguration generated: {path}")
    else:
        sys.stdout.write(result['yaml'])


def handle_parse_command(args, manager):
    """Handle parse command execution."""
    _print_json_output(manager.parse_file(_require_file(args, 'parse')))


def handle_check_updates_command(args, manager):
    """Handle check-updates command execution."""
    path = _require_file(args, 'check-updates')
    _print_json_output(manager.check_updates(path, catalog_dir=args.catalog_dir))


def handle_update_command(args, manager):
    """Handle update command execution."""
    path = _require_file(args, 'update')
    actions = build_operator_actions(args)
    default_all = DefaultChannelAction(args.default_channel_all) if args.default_channel_all else None

    result = manager.update(
        path, actions, update_all=args.update_all,
        default_channel_all=default_all, catalog_dir=args.catalog_dir
    )

    for name in result.removed:
        logger.warning(f"Operator removed from configuration: {name}")
    for issue in result.issues:
        logger.warning(str(issue))

    content = manager.reconciler.render(result)
    if args.output:
        filename = manager.synthesizer.updated_filename(path)
        target = _write_output(content, args.output, filename)
        print(f"✓ Updated ImageSetConfiguration written: {target}")
        for report in result.reports:
            outcomes = ', '.join(str(outcome) for outcome in report.outcomes)
            print(f"  {report.operator}: {outcomes}")
    else:
        sys.stdout.write(content)


def handle_generate_config_command(args, manager):
    """Handle generate-config command - simple template generator."""
    if args.output:
        config_file = manager.generate_config(args.output)
        print(f"✓ Configuration template generated: {config_file}")
    else:
        print(manager.config_manager.get_config_template_content())


def handle_cache_command(args, manager):
    """Handle cache command execution."""
    if args.clear:
        removed = manager.clear_cache()
        print(f"✓ Removed {removed} cached catalogs")
    if args.stats or not args.clear:
        _print_json_output(manager.cache_stats())


# Command dispatcher mapping
COMMAND_HANDLERS = {
    'list-operators': handle_list_operators_command,
    'operator-details': handle_operator_details_command,
    'generate': handle_generate_command,
    'parse': handle_parse_command,
    'check-updates': handle_check_updates_command,
    'update': handle_update_command,
    'generate-config': handle_generate_config_command,
    'cache': handle_cache_command,
}


def handle_early_exit_flags(args, argv: List[str]) -> bool:
    """Handle early-exit flags like --help and --examples"""
    if not argv:
        HelpManager().show_help()
        return True

    if getattr(args, 'help', False) and not args.command:
        HelpManager().show_help()
        return True

    if getattr(args, 'examples', False) and args.command:
        return handle_examples(args.command)

    return False


def load_and_merge_configuration(args) -> Optional[Dict[str, Any]]:
    """Load configuration file and merge with command-line arguments"""
    config = None
    if getattr(args, 'config', None):
        config = ConfigManager().load_config(args.config)
        merge_config_with_args(args, config)
    return config


def configure_imageset_manager(args) -> ImageSetManager:
    """Create the manager from merged arguments"""
    return create_imageset_manager(
        skip_tls=getattr(args, 'skip_tls', False) or False,
        debug=getattr(args, 'debug', False) or False,
        cache_dir=getattr(args, 'cache_dir', None),
        cache_ttl=getattr(args, 'cache_ttl', None) or FileConstants.CACHE_TTL,
        use_cache=not getattr(args, 'no_cache', False),
        api_version=getattr(args, 'api_version', None) or ImageSetConstants.DEFAULT_API_VERSION,
        registry=getattr(args, 'registry', None) or CatalogConstants.DEFAULT_REGISTRY
    )


def dispatch_command(args, manager):
    """Dispatch to the appropriate command handler"""
    handler = COMMAND_HANDLERS.get(args.command)
    if handler:
        handler(args, manager)
    else:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        sys.exit(1)


def main(argv: Optional[List[str]] = None):
    """Main entry point with unified execution flow"""
    argv = sys.argv[1:] if argv is None else argv

    # Step 1: Parse arguments
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    # Step 2: Handle early-exit flags like --help and --examples
    if handle_early_exit_flags(args, argv):
        return

    # Step 3: Validate command was specified
    if not args.command:
        print("Error: No command specified. Use --help for usage information.", file=sys.stderr)
        sys.exit(1)

    try:
        # Step 4: Load and merge configuration
        load_and_merge_configuration(args)

        # Step 5: Set up logging once debug is final
        setup_logging(getattr(args, 'debug', False))
        if getattr(args, 'skip_tls', False):
            logger.warning("TLS verification disabled for image pulls")

        # Step 6: Configure ImageSet Manager
        manager = configure_imageset_manager(args)

        # Step 7: Dispatch to the command handler
        dispatch_command(args, manager)

    except KeyboardInterrupt:
        print("\nOperation cancelled by user.", file=sys.stderr)
        sys.exit(1)
    except ImageSetManagerError as e:
        logger.debug(f"{type(e).__name__}: {e}")
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
