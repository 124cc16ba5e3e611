#!/usr/bin/env python3
"""
Complete Workflow Test Suite

Tests the command-line workflow end to end against a local catalog:
1. list-operators / operator-details (browse the catalog)
2. generate (write an ImageSetConfiguration)
3. parse / check-updates / update (maintain the written file)

No registry access is needed; catalogs are read with --catalog-dir.
"""

import json
from pathlib import Path

import pytest
import yaml

from test_constants import CatalogTestConstants, CommonTestConstants, TestUtilities
TestUtilities.setup_test_path()

CATALOG_ARGS = ['--catalog', CommonTestConstants.CATALOG, '--version', CommonTestConstants.CATALOG_VERSION]

EXISTING_CONFIG = f"""\
# Nightly mirror set
kind: ImageSetConfiguration
apiVersion: mirror.openshift.io/v2alpha1
mirror:
  operators:
    - catalog: {CommonTestConstants.CATALOG_REF}
      packages:
        - name: quay-operator
          channels:
            - name: stable-3.12
              minVersion: 3.12.2
        - name: cluster-logging
          channels:
            - name: stable-6.0
              minVersion: 6.0.3
        - name: retired-operator
          channels:
            - name: stable
              minVersion: 1.0.0
"""


@pytest.fixture
def catalog_dir(tmp_path):
    return str(TestUtilities.write_catalog(tmp_path / "catalog"))


@pytest.fixture
def cache_dir(tmp_path):
    return str(tmp_path / "cache")


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "imageset-config.yaml"
    path.write_text(EXISTING_CONFIG)
    return str(path)


def packages_by_name(document):
    return {p['name']: p for p in document['mirror']['operators'][0]['packages']}


class TestBrowseWorkflow:
    """Catalog browsing commands"""

    def test_list_operators(self, catalog_dir, cache_dir):
        result = TestUtilities.run_cli_json(
            ['list-operators', '--catalog-dir', catalog_dir, '--cache-dir', cache_dir] + CATALOG_ARGS
        )
        assert result['operators'] == CatalogTestConstants.OPERATORS
        assert result['total'] == len(CatalogTestConstants.OPERATORS)
        assert result['catalog'] == CommonTestConstants.CATALOG

    def test_operator_details(self, catalog_dir, cache_dir):
        result = TestUtilities.run_cli_json([
            'operator-details', '--operator', CatalogTestConstants.QUAY,
            '--catalog-dir', catalog_dir, '--cache-dir', cache_dir
        ])
        assert result['name'] == CatalogTestConstants.QUAY
        assert result['defaultChannel'] == CatalogTestConstants.QUAY_DEFAULT
        assert result['defaultChannelSource'] == "package"

        channels = {c['name']: c['versions'] for c in result['channels']}
        assert channels[CatalogTestConstants.QUAY_DEFAULT][0] == CatalogTestConstants.QUAY_LATEST
        assert CatalogTestConstants.QUAY_OLD_CHANNEL in channels

    def test_operator_details_without_package_default(self, catalog_dir, cache_dir):
        result = TestUtilities.run_cli_json([
            'operator-details', '--operator', CatalogTestConstants.NO_DEFAULT,
            '--catalog-dir', catalog_dir, '--cache-dir', cache_dir
        ])
        assert result['defaultChannel'] == "fast"
        assert result['defaultChannelSource'] == "first_channel"

    def test_unknown_operator_fails(self, catalog_dir, cache_dir):
        result = TestUtilities.run_cli([
            'operator-details', '--operator', 'missing-operator',
            '--catalog-dir', catalog_dir, '--cache-dir', cache_dir
        ])
        assert result.returncode == 1
        assert "Error:" in result.stderr
        assert "missing-operator" in result.stderr

    def test_catalog_from_config_file(self, tmp_path, catalog_dir, cache_dir):
        config = tmp_path / "config.yaml"
        config.write_text(yaml.safe_dump({
            'catalog': {
                'name': CommonTestConstants.CATALOG,
                'version': CommonTestConstants.CATALOG_VERSION,
                'directory': catalog_dir
            },
            'global': {'cache_dir': cache_dir}
        }))

        result = TestUtilities.run_cli_json(['list-operators', '--config', str(config)])
        assert result['operators'] == CatalogTestConstants.OPERATORS
        assert result['version'] == CommonTestConstants.CATALOG_VERSION

    def test_invalid_config_file_fails(self, tmp_path):
        config = tmp_path / "config.yaml"
        config.write_text(yaml.safe_dump({'imageset': {'apiVersion': 'mirror.openshift.io/v0'}}))

        result = TestUtilities.run_cli(['list-operators', '--config', str(config)])
        assert result.returncode == 1
        assert "Error:" in result.stderr

    def test_missing_catalog_source_fails(self, cache_dir):
        result = TestUtilities.run_cli(['list-operators', '--cache-dir', cache_dir])
        assert result.returncode == 1
        assert "Error:" in result.stderr


class TestGenerateWorkflow:
    """generate command"""

    def test_generate_to_output_directory(self, tmp_path, catalog_dir, cache_dir):
        output_dir = tmp_path / "out"
        result = TestUtilities.run_cli([
            'generate',
            '--select', CatalogTestConstants.QUAY,
            '--select', f"{CatalogTestConstants.LOGGING}:{CatalogTestConstants.LOGGING_OLD_CHANNEL}:6.0.3",
            '--catalog-dir', catalog_dir, '--cache-dir', cache_dir,
            '--output', str(output_dir)
        ] + CATALOG_ARGS)
        assert result.returncode == 0, result.stderr
        assert "✓ ImageSetConfiguration generated" in result.stdout

        written = output_dir / "imageset-config-redhat-operator-index-v4.18.yaml"
        document = yaml.safe_load(written.read_text())

        assert document['kind'] == "ImageSetConfiguration"
        assert document['mirror']['operators'][0]['catalog'] == CommonTestConstants.CATALOG_REF

        packages = packages_by_name(document)
        assert list(packages) == [CatalogTestConstants.QUAY, CatalogTestConstants.LOGGING]
        assert packages[CatalogTestConstants.QUAY]['channels'] == [
            {'name': CatalogTestConstants.QUAY_DEFAULT, 'minVersion': CatalogTestConstants.QUAY_LATEST}
        ]
        assert 'defaultChannel' not in packages[CatalogTestConstants.QUAY]
        assert packages[CatalogTestConstants.LOGGING]['defaultChannel'] == CatalogTestConstants.LOGGING_DEFAULT

    def test_generate_to_stdout(self, catalog_dir, cache_dir):
        result = TestUtilities.run_cli([
            'generate', '--select', CatalogTestConstants.NO_DEFAULT,
            '--catalog-dir', catalog_dir, '--cache-dir', cache_dir
        ] + CATALOG_ARGS)
        assert result.returncode == 0, result.stderr

        document = yaml.safe_load(TestUtilities.filter_logging_from_stdout(result.stdout))
        package = document['mirror']['operators'][0]['packages'][0]
        assert package['channels'] == [{'name': 'fast', 'minVersion': '2.0.0'}]

    def test_generate_unknown_version_fails(self, catalog_dir, cache_dir):
        result = TestUtilities.run_cli([
            'generate', '--select', f"{CatalogTestConstants.QUAY}:{CatalogTestConstants.QUAY_DEFAULT}:9.9.9",
            '--catalog-dir', catalog_dir, '--cache-dir', cache_dir
        ] + CATALOG_ARGS)
        assert result.returncode == 1
        assert "9.9.9" in result.stderr

    def test_generate_requires_selection(self, catalog_dir):
        result = TestUtilities.run_cli(['generate', '--catalog-dir', catalog_dir] + CATALOG_ARGS)
        assert result.returncode == 1
        assert "--select" in result.stderr


class TestMaintenanceWorkflow:
    """parse, check-updates and update commands"""

    def test_parse(self, config_file, cache_dir):
        result = TestUtilities.run_cli_json(['parse', '--file', config_file])
        assert result['catalog'] == CommonTestConstants.CATALOG
        assert result['version'] == CommonTestConstants.CATALOG_VERSION
        assert [p['name'] for p in result['packages']] == [
            CatalogTestConstants.QUAY, CatalogTestConstants.LOGGING, 'retired-operator'
        ]
        assert result['packages'][0]['version'] == "3.12.2"

    def test_parse_requires_file(self):
        result = TestUtilities.run_cli(['parse'])
        assert result.returncode == 1
        assert "--file" in result.stderr

    def test_parse_malformed_file(self, tmp_path):
        bad = tmp_path / "bad.yaml"
        bad.write_text("kind: Something\n")
        result = TestUtilities.run_cli(['parse', '--file', str(bad)])
        assert result.returncode == 1
        assert "Error:" in result.stderr

    def test_check_updates(self, config_file, catalog_dir, cache_dir):
        result = TestUtilities.run_cli_json([
            'check-updates', '--file', config_file, '--catalog-dir', catalog_dir, '--cache-dir', cache_dir
        ])
        info = {entry['name']: entry for entry in result['versionInfo']}

        assert info[CatalogTestConstants.QUAY]['hasUpdate'] is True
        assert info[CatalogTestConstants.QUAY]['latestVersion'] == CatalogTestConstants.QUAY_LATEST
        assert info[CatalogTestConstants.LOGGING]['hasUpdate'] is False
        assert info[CatalogTestConstants.LOGGING]['defaultChannel'] == CatalogTestConstants.LOGGING_DEFAULT
        assert info['retired-operator']['error']

    def test_update_writes_reconciled_copy(self, tmp_path, config_file, catalog_dir, cache_dir):
        output_dir = tmp_path / "updated"
        result = TestUtilities.run_cli([
            'update', '--file', config_file,
            '--update', CatalogTestConstants.QUAY,
            '--catalog-dir', catalog_dir, '--cache-dir', cache_dir,
            '--output', str(output_dir)
        ])
        assert result.returncode == 0, result.stderr
        assert "✓ Updated ImageSetConfiguration written" in result.stdout

        written = output_dir / "imageset-config-updated.yaml"
        text = written.read_text()
        assert "# Nightly mirror set" in text

        packages = packages_by_name(yaml.safe_load(text))
        assert 'retired-operator' not in packages
        assert packages[CatalogTestConstants.QUAY]['channels'][0]['minVersion'] == CatalogTestConstants.QUAY_LATEST
        assert packages[CatalogTestConstants.LOGGING]['channels'][0]['minVersion'] == "6.0.3"
        assert packages[CatalogTestConstants.LOGGING]['defaultChannel'] == CatalogTestConstants.LOGGING_DEFAULT

        assert Path(config_file).read_text() == EXISTING_CONFIG

    def test_update_with_default_channel_replace(self, config_file, catalog_dir, cache_dir):
        result = TestUtilities.run_cli([
            'update', '--file', config_file,
            '--default-channel', f"{CatalogTestConstants.LOGGING}=replace",
            '--catalog-dir', catalog_dir, '--cache-dir', cache_dir
        ])
        assert result.returncode == 0, result.stderr

        document = yaml.safe_load(TestUtilities.filter_logging_from_stdout(result.stdout))
        logging_entry = packages_by_name(document)[CatalogTestConstants.LOGGING]
        assert logging_entry['channels'] == [{'name': CatalogTestConstants.LOGGING_DEFAULT, 'minVersion': '6.1.1'}]
        assert 'defaultChannel' not in logging_entry

    def test_update_rejects_invalid_default_channel_action(self, config_file, catalog_dir):
        result = TestUtilities.run_cli([
            'update', '--file', config_file,
            '--default-channel', f"{CatalogTestConstants.LOGGING}=sometimes",
            '--catalog-dir', catalog_dir
        ])
        assert result.returncode == 1
        assert "sometimes" in result.stderr


class TestAuxiliaryCommands:
    """generate-config, cache and help output"""

    def test_generate_config(self, tmp_path):
        result = TestUtilities.run_cli(['generate-config', '--output', str(tmp_path)])
        assert result.returncode == 0, result.stderr
        assert "✓ Configuration template generated" in result.stdout

    def test_generate_config_to_stdout(self):
        result = TestUtilities.run_cli(['generate-config'])
        assert result.returncode == 0, result.stderr
        assert yaml.safe_load(TestUtilities.filter_logging_from_stdout(result.stdout))

    def test_cache_stats(self, cache_dir):
        stats = TestUtilities.run_cli_json(['cache', '--stats', '--cache-dir', cache_dir])
        assert stats['total_entries'] == 0
        assert stats['cache_dir'] == cache_dir

    def test_cache_clear(self, cache_dir):
        result = TestUtilities.run_cli(['cache', '--clear', '--cache-dir', cache_dir])
        assert result.returncode == 0, result.stderr
        assert "✓ Removed 0 cached catalogs" in result.stdout

    def test_examples(self):
        result = TestUtilities.run_cli(['generate', '--examples'])
        assert result.returncode == 0
        assert "generate" in result.stdout

    def test_no_arguments_shows_help(self):
        result = TestUtilities.run_cli([])
        assert result.returncode == 0
        assert result.stdout.strip()

    def test_unknown_catalog_rejected(self):
        result = TestUtilities.run_cli(['list-operators', '--catalog', 'not-a-catalog', '--version', 'v4.18'])
        assert result.returncode == 2

    def test_entry_script_exists(self):
        assert Path(CommonTestConstants.ENTRY_SCRIPT).is_file()


def test_generate_then_update_round_trip(tmp_path, catalog_dir, cache_dir):
    """A freshly generated file is already current"""
    output_dir = tmp_path / "generated"
    generate = TestUtilities.run_cli([
        'generate', '--select', CatalogTestConstants.QUAY,
        '--catalog-dir', catalog_dir, '--cache-dir', cache_dir, '--output', str(output_dir)
    ] + CATALOG_ARGS)
    assert generate.returncode == 0, generate.stderr

    generated = next(output_dir.glob("*.yaml"))
    update = TestUtilities.run_cli([
        'update', '--file', str(generated), '--update-all',
        '--catalog-dir', catalog_dir, '--cache-dir', cache_dir
    ])
    assert update.returncode == 0, update.stderr

    before = yaml.safe_load(generated.read_text())
    after = yaml.safe_load(TestUtilities.filter_logging_from_stdout(update.stdout))
    assert json.dumps(before, sort_keys=True) == json.dumps(after, sort_keys=True)
