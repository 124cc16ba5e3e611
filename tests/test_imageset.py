#!/usr/bin/env python3
"""
ImageSet Test Suite

Tests generation, parsing and reconciliation of ImageSetConfiguration
documents.
"""

import copy
import itertools

import pytest

from test_constants import CommonTestConstants, TestUtilities
TestUtilities.setup_test_path()

from imageset_manager.libs.catalog import CatalogGraph, ChannelVersions, DefaultChannelSource  # noqa: E402
from imageset_manager.libs.core.constants import ImageSetConstants  # noqa: E402
from imageset_manager.libs.core.exceptions import (  # noqa: E402
    ChannelNotFoundError, MalformedConfigError, MissingDefaultChannelError,
    OperatorNotFoundError, VersionNotFoundError
)
from imageset_manager.libs.imageset import (  # noqa: E402
    DefaultChannelAction, ImageSetParser, ImageSetReconciler, ImageSetSynthesizer,
    OperatorAction, Outcome, Selection, dump_document, load_document
)

REF = CommonTestConstants.CATALOG_REF


def make_graph(default_channel, channels, explicit=True, package="foo"):
    source = DefaultChannelSource.PACKAGE if explicit else DefaultChannelSource.FIRST_CHANNEL
    return CatalogGraph(
        package=package,
        default_channel=default_channel,
        default_channel_source=source,
        channels=[ChannelVersions(name, versions) for name, versions in channels.items()]
    )


def make_document(packages, api_version=ImageSetConstants.DEFAULT_API_VERSION):
    return {
        'kind': ImageSetConstants.KIND,
        'apiVersion': api_version,
        'mirror': {'operators': [{'catalog': REF, 'packages': packages}]}
    }


def packages_of(document):
    return document['mirror']['operators'][0]['packages']


def numeric_version_text(min_version="4.10"):
    """A document whose minVersion values are unquoted numbers"""
    return (
        "kind: ImageSetConfiguration\n"
        "apiVersion: mirror.openshift.io/v2alpha1\n"
        "mirror:\n"
        "  operators:\n"
        f"    - catalog: {REF}\n"
        "      packages:\n"
        "        - name: foo\n"
        "          channels:\n"
        "            - name: stable\n"
        f"              minVersion: {min_version}\n"
        "        - name: bar\n"
        "          channels:\n"
        "            - name: stable\n"
        "              minVersion: 2\n"
    )


class TestImageSetSynthesizer:
    """Document generation"""

    def test_one_entry_per_selection_in_order(self):
        doc = ImageSetSynthesizer().synthesize(REF, [
            Selection("zeta", "stable", "1.0.0"),
            Selection("alpha", "fast", "2.0.0"),
        ])

        assert doc['kind'] == ImageSetConstants.KIND
        assert doc['apiVersion'] == ImageSetConstants.API_VERSION_V2
        assert doc['mirror']['operators'][0]['catalog'] == REF
        assert [p['name'] for p in packages_of(doc)] == ["zeta", "alpha"]
        assert packages_of(doc)[0]['channels'] == [{'name': 'stable', 'minVersion': '1.0.0'}]

    def test_default_channel_marker_only_when_different(self):
        doc = ImageSetSynthesizer().synthesize(REF, [
            Selection("a", "beta", "1.0.0", default_channel="stable"),
            Selection("b", "stable", "1.0.0", default_channel="stable"),
            Selection("c", "stable", "1.0.0"),
        ])
        a, b, c = packages_of(doc)
        assert a['defaultChannel'] == "stable"
        assert 'defaultChannel' not in b
        assert 'defaultChannel' not in c

    def test_render_and_api_version(self):
        synthesizer = ImageSetSynthesizer(api_version=ImageSetConstants.API_VERSION_V1)
        text = synthesizer.render(synthesizer.synthesize(REF, [Selection("a", "stable", "1.0.0")]))
        assert "apiVersion: mirror.openshift.io/v1alpha2" in text
        assert "kind: ImageSetConfiguration" in text
        assert "minVersion: 1.0.0" in text

    def test_filenames(self):
        assert ImageSetSynthesizer.generate_filename() == "imageset-config.yaml"
        assert ImageSetSynthesizer.generate_filename("redhat-operator-index", "v4.18") == \
            "imageset-config-redhat-operator-index-v4.18.yaml"
        assert ImageSetSynthesizer.updated_filename("/tmp/imageset-config.yaml") == "imageset-config-updated.yaml"


class TestImageSetParser:
    """Document parsing"""

    def test_round_trip(self):
        selections = [
            Selection("a", "stable", "1.0.0"),
            Selection("b", "fast", "2.0.0", default_channel="stable"),
        ]
        synthesizer = ImageSetSynthesizer()
        doc = synthesizer.synthesize(REF, selections)

        assert ImageSetParser().parse(doc).selections == selections
        assert ImageSetParser().parse(synthesizer.render(doc)).selections == selections

    def test_catalog_reference_split(self):
        parsed = ImageSetParser().parse(ImageSetSynthesizer().synthesize(REF, [Selection("a", "stable", "1")]))
        assert parsed.catalog_ref == REF
        assert parsed.catalog_name == CommonTestConstants.CATALOG
        assert parsed.catalog_version == CommonTestConstants.CATALOG_VERSION
        assert parsed.to_dict()['packages'][0]['name'] == "a"

    def test_first_channel_is_active_selection(self):
        doc = make_document([{
            'name': 'a',
            'channels': [{'name': 'beta', 'minVersion': '1.0.0'}, {'name': 'stable', 'minVersion': '5.0.0'}]
        }])
        selection = ImageSetParser().parse(doc).selections[0]
        assert (selection.channel, selection.version) == ('beta', '1.0.0')

    def test_unquoted_numeric_versions_keep_their_text(self):
        selections = ImageSetParser().parse(numeric_version_text()).selections
        assert [s.version for s in selections] == ["4.10", "2"]

    def test_round_trip_leaves_out_default_channel_version(self):
        selections = [
            Selection("a", "beta", "1.0.0", default_channel="stable", default_channel_version="5.0.0"),
            Selection("b", "stable", "2.0.0", default_channel="stable", default_channel_version="2.0.0"),
        ]
        synthesizer = ImageSetSynthesizer()
        parsed = ImageSetParser().parse(synthesizer.render(synthesizer.synthesize(REF, selections)))

        assert parsed.selections[0] == selections[0].as_written()
        assert parsed.selections[0].default_channel_version is None
        assert parsed.selections[1] == Selection("b", "stable", "2.0.0")

    def test_accepts_older_api_version(self):
        doc = make_document([{'name': 'a', 'channels': [{'name': 'stable'}]}],
                            api_version=ImageSetConstants.API_VERSION_V1)
        assert ImageSetParser().parse(doc).selections[0] == Selection('a', 'stable', None)

    @pytest.mark.parametrize("document", [
        "just a string",
        ["a", "list"],
        {'kind': 'SomethingElse', 'mirror': {'operators': [{'packages': [{'name': 'a'}]}]}},
        {'kind': ImageSetConstants.KIND},
        {'kind': ImageSetConstants.KIND, 'mirror': {'operators': []}},
        {'kind': ImageSetConstants.KIND, 'mirror': {'operators': [{'catalog': REF, 'packages': []}]}},
        {'kind': ImageSetConstants.KIND, 'mirror': {'operators': [{'catalog': REF, 'packages': [{'channels': []}]}]}},
    ])
    def test_malformed_documents(self, document):
        with pytest.raises(MalformedConfigError):
            ImageSetParser().parse(document)

    def test_invalid_yaml_text(self):
        with pytest.raises(MalformedConfigError):
            ImageSetParser().parse("kind: [unclosed\n")


class TestImageSetReconciler:
    """Reconciliation outcomes"""

    def test_update_to_latest_drops_max_version(self):
        doc = ImageSetSynthesizer().synthesize(REF, [Selection("foo", "stable", "v1")])
        packages_of(doc)[0]['channels'][0]['maxVersion'] = "v1"
        graphs = {"foo": make_graph("stable", {"stable": ["v2", "v1"]})}

        result = ImageSetReconciler().reconcile(doc, graphs, {"foo": OperatorAction(update=True)})

        assert packages_of(result.document)[0]['channels'] == [{'name': 'stable', 'minVersion': 'v2'}]
        assert result.report_for("foo").outcomes == [Outcome.VERSION_UPDATED]
        assert result.issues == []
        assert packages_of(doc)[0]['channels'][0]['minVersion'] == "v1"

    def test_update_to_requested_version(self):
        doc = ImageSetSynthesizer().synthesize(REF, [Selection("foo", "stable", "v1")])
        graphs = {"foo": make_graph("stable", {"stable": ["v3", "v2", "v1"]})}

        result = ImageSetReconciler().reconcile(doc, graphs, {"foo": OperatorAction(update=True, version="v2")})
        assert packages_of(result.document)[0]['channels'][0]['minVersion'] == "v2"

        result = ImageSetReconciler().reconcile(doc, graphs, {"foo": OperatorAction(update=True, version="v9")})
        assert packages_of(result.document)[0]['channels'][0]['minVersion'] == "v1"
        assert isinstance(result.issues[0], VersionNotFoundError)

    def test_no_update_without_request(self):
        doc = ImageSetSynthesizer().synthesize(REF, [Selection("foo", "stable", "v1")])
        graphs = {"foo": make_graph("stable", {"stable": ["v2", "v1"]})}

        result = ImageSetReconciler().reconcile(doc, graphs)
        assert packages_of(result.document)[0]['channels'][0]['minVersion'] == "v1"
        assert result.report_for("foo").outcomes == [Outcome.UNCHANGED]

    def test_missing_operator_removed_and_reported(self):
        doc = ImageSetSynthesizer().synthesize(REF, [
            Selection("foo", "stable", "v1"),
            Selection("bar", "stable", "v1"),
        ])
        graphs = {"bar": make_graph("stable", {"stable": ["v1"]}, package="bar")}

        result = ImageSetReconciler().reconcile(doc, graphs)

        assert [p['name'] for p in packages_of(result.document)] == ["bar"]
        assert result.removed == ["foo"]
        assert isinstance(result.issues_for("foo")[0], OperatorNotFoundError)
        assert result.report_for("foo").outcomes == [Outcome.REMOVED]

    def test_explicit_remove(self):
        doc = ImageSetSynthesizer().synthesize(REF, [Selection("foo", "stable", "v1")])
        graphs = {"foo": make_graph("stable", {"stable": ["v1"]})}

        result = ImageSetReconciler().reconcile(doc, graphs, {"foo": OperatorAction(remove=True)})
        assert packages_of(result.document) == []
        assert result.removed == ["foo"]
        assert result.issues == []

    def test_add_default_channel(self):
        doc = ImageSetSynthesizer().synthesize(REF, [Selection("foo", "beta", "v1", default_channel="stable")])
        graphs = {"foo": make_graph("stable", {"beta": ["v1"], "stable": ["v5", "v4"]})}

        result = ImageSetReconciler().reconcile(
            doc, graphs, {"foo": OperatorAction(default_channel=DefaultChannelAction.ADD)}
        )

        package = packages_of(result.document)[0]
        assert package['channels'] == [
            {'name': 'beta', 'minVersion': 'v1'},
            {'name': 'stable', 'minVersion': 'v5'},
        ]
        assert 'defaultChannel' not in package
        assert result.report_for("foo").outcomes == [Outcome.DEFAULT_CHANNEL_ADDED]

    def test_replace_with_default_channel(self):
        doc = ImageSetSynthesizer().synthesize(REF, [Selection("foo", "beta", "v1", default_channel="stable")])
        graphs = {"foo": make_graph("stable", {"beta": ["v1"], "stable": ["v5", "v4"]})}

        result = ImageSetReconciler().reconcile(
            doc, graphs, {"foo": OperatorAction(default_channel=DefaultChannelAction.REPLACE)}
        )

        package = packages_of(result.document)[0]
        assert package['channels'] == [{'name': 'stable', 'minVersion': 'v5'}]
        assert 'defaultChannel' not in package
        assert result.report_for("foo").outcomes == [Outcome.DEFAULT_CHANNEL_REPLACED]

    def test_none_references_default_channel(self):
        doc = ImageSetSynthesizer().synthesize(REF, [Selection("foo", "beta", "v1")])
        graphs = {"foo": make_graph("stable", {"beta": ["v1"], "stable": ["v5"]})}

        result = ImageSetReconciler().reconcile(doc, graphs)

        package = packages_of(result.document)[0]
        assert package['channels'] == [{'name': 'beta', 'minVersion': 'v1'}]
        assert package['defaultChannel'] == "stable"
        assert result.report_for("foo").outcomes == [Outcome.DEFAULT_CHANNEL_REFERENCED]

    def test_redundant_marker_is_removed(self):
        doc = make_document([{
            'name': 'foo',
            'channels': [{'name': 'stable', 'minVersion': 'v1'}],
            'defaultChannel': 'stable'
        }])
        graphs = {"foo": make_graph("stable", {"stable": ["v1"]})}

        result = ImageSetReconciler().reconcile(doc, graphs)
        assert 'defaultChannel' not in packages_of(result.document)[0]
        assert packages_of(doc)[0]['defaultChannel'] == "stable"

    def test_stale_marker_dropped_when_default_is_constrained(self):
        doc = make_document([{
            'name': 'foo',
            'channels': [{'name': 'stable', 'minVersion': 'v1'}],
            'defaultChannel': 'old'
        }])
        graphs = {"foo": make_graph("stable", {"stable": ["v1"]})}

        result = ImageSetReconciler().reconcile(doc, graphs)

        assert 'defaultChannel' not in packages_of(result.document)[0]
        assert result.report_for("foo").outcomes == [Outcome.DEFAULT_CHANNEL_MARKER_REMOVED]

    def test_stale_marker_overwritten_with_catalog_default(self):
        doc = make_document([{
            'name': 'foo',
            'channels': [{'name': 'beta', 'minVersion': 'v1'}],
            'defaultChannel': 'old'
        }])
        graphs = {"foo": make_graph("stable", {"beta": ["v1"], "stable": ["v5"]})}

        result = ImageSetReconciler().reconcile(doc, graphs)

        assert packages_of(result.document)[0]['defaultChannel'] == "stable"
        assert result.report_for("foo").outcomes == [Outcome.DEFAULT_CHANNEL_REFERENCED]

    def test_stale_marker_dropped_when_default_channel_added(self):
        doc = make_document([{
            'name': 'foo',
            'channels': [{'name': 'beta', 'minVersion': 'v1'}],
            'defaultChannel': 'old'
        }])
        graphs = {"foo": make_graph("stable", {"beta": ["v1"], "stable": ["v5"]})}

        result = ImageSetReconciler().reconcile(
            doc, graphs, {"foo": OperatorAction(default_channel=DefaultChannelAction.ADD)}
        )

        package = packages_of(result.document)[0]
        assert 'defaultChannel' not in package
        assert package['channels'][-1] == {'name': 'stable', 'minVersion': 'v5'}

    def test_update_unquoted_numeric_version(self):
        graphs = {
            "foo": make_graph("stable", {"stable": ["4.12", "4.10"]}),
            "bar": make_graph("stable", {"stable": ["2"]}, package="bar"),
        }
        actions = {"foo": OperatorAction(update=True), "bar": OperatorAction(update=True)}

        result = ImageSetReconciler().reconcile(numeric_version_text(), graphs, actions)

        foo, bar = packages_of(result.document)
        assert foo['channels'][0]['minVersion'] == "4.12"
        assert str(bar['channels'][0]['minVersion']) == "2"
        assert result.report_for("foo").outcomes == [Outcome.VERSION_UPDATED]
        assert result.report_for("bar").outcomes == [Outcome.UNCHANGED]
        assert result.issues == []

    def test_unquoted_version_at_latest_is_unchanged(self):
        graphs = {
            "foo": make_graph("stable", {"stable": ["4.10", "4.9"]}),
            "bar": make_graph("stable", {"stable": ["2"]}, package="bar"),
        }

        result = ImageSetReconciler().reconcile(
            numeric_version_text(), graphs, {"foo": OperatorAction(update=True)}
        )

        assert result.report_for("foo").outcomes == [Outcome.UNCHANGED]
        assert "minVersion: 4.10\n" in ImageSetReconciler.render(result)

        selections = ImageSetParser().parse(numeric_version_text()).selections
        info = ImageSetReconciler().compare_versions(selections, graphs)
        assert [v.has_update for v in info] == [False, False]

    def test_channel_replacement(self):
        doc = ImageSetSynthesizer().synthesize(REF, [Selection("foo", "stable-1.0", "1.0.3")])
        packages_of(doc)[0]['channels'][0]['maxVersion'] = "1.0.9"
        graphs = {"foo": make_graph("stable-2.0", {"stable-2.0": ["2.0.1", "2.0.0"]})}

        result = ImageSetReconciler().reconcile(
            doc, graphs, {"foo": OperatorAction(replace_channel="stable-2.0")}
        )

        assert packages_of(result.document)[0]['channels'] == [{'name': 'stable-2.0', 'minVersion': '2.0.1'}]
        assert Outcome.CHANNEL_REPLACED in result.report_for("foo").outcomes

    def test_missing_channel_without_replacement(self):
        doc = ImageSetSynthesizer().synthesize(REF, [Selection("foo", "stable-1.0", "1.0.3")])
        graphs = {"foo": make_graph("stable-2.0", {"stable-2.0": ["2.0.1"]})}

        result = ImageSetReconciler().reconcile(doc, graphs, {"foo": OperatorAction(update=True)})

        assert packages_of(result.document)[0]['channels'] == [{'name': 'stable-1.0', 'minVersion': '1.0.3'}]
        assert result.report_for("foo").outcomes == [Outcome.CHANNEL_NOT_FOUND]
        issue = result.issues_for("foo")[0]
        assert isinstance(issue, ChannelNotFoundError)
        assert issue.available == ["stable-2.0"]

    def test_fallback_default_is_reported(self):
        doc = ImageSetSynthesizer().synthesize(REF, [Selection("foo", "stable", "v1")])
        graphs = {"foo": make_graph("stable", {"stable": ["v1"]}, explicit=False)}

        result = ImageSetReconciler().reconcile(doc, graphs)
        assert isinstance(result.issues[0], MissingDefaultChannelError)
        assert result.issues[0].fallback == "stable"

    def test_packages_without_channels_are_dropped(self):
        doc = make_document([
            {'name': 'foo', 'channels': []},
            {'name': 'bar', 'channels': [{'name': 'stable', 'minVersion': 'v1'}]},
        ])
        graphs = {
            "foo": make_graph("stable", {"stable": ["v1"]}),
            "bar": make_graph("stable", {"stable": ["v1"]}, package="bar"),
        }

        result = ImageSetReconciler().reconcile(doc, graphs)
        assert [p['name'] for p in packages_of(result.document)] == ["bar"]
        assert result.removed == ["foo"]

    def test_input_document_is_not_mutated(self):
        doc = ImageSetSynthesizer().synthesize(REF, [Selection("foo", "beta", "v1", default_channel="stable")])
        before = copy.deepcopy(doc)
        graphs = {"foo": make_graph("stable", {"beta": ["v2", "v1"], "stable": ["v5"]})}

        ImageSetReconciler().reconcile(
            doc, graphs, {"foo": OperatorAction(update=True, default_channel=DefaultChannelAction.REPLACE)}
        )
        assert doc == before

    def test_comments_survive_rewrite(self):
        text = (
            "# Mirror configuration\n"
            "kind: ImageSetConfiguration\n"
            "apiVersion: mirror.openshift.io/v2alpha1\n"
            "mirror:\n"
            "  operators:\n"
            f"    - catalog: {REF}\n"
            "      packages:\n"
            "        - name: foo  # pinned by platform team\n"
            "          channels:\n"
            "            - name: stable\n"
            "              minVersion: v1\n"
        )
        graphs = {"foo": make_graph("stable", {"stable": ["v2", "v1"]})}

        reconciler = ImageSetReconciler()
        result = reconciler.reconcile(load_document(text), graphs, {"foo": OperatorAction(update=True)})
        rendered = reconciler.render(result)

        assert "# Mirror configuration" in rendered
        assert "# pinned by platform team" in rendered
        assert "minVersion: v2" in rendered

    def test_marker_invariant_holds_for_all_paths(self):
        graphs = {"foo": make_graph("stable", {"beta": ["v2", "v1"], "stable": ["v5", "v4"]})}
        channel_sets = [["beta"], ["stable"], ["beta", "stable"], ["stable", "beta"], ["gone"]]
        markers = [None, "stable", "beta"]

        for channels, marker, choice, update, replace in itertools.product(
                channel_sets, markers, list(DefaultChannelAction), [False, True], [None, "beta", "stable"]):
            package = {'name': 'foo', 'channels': [{'name': c, 'minVersion': 'v1'} for c in channels]}
            if marker:
                package['defaultChannel'] = marker
            action = OperatorAction(update=update, replace_channel=replace, default_channel=choice)

            result = ImageSetReconciler().reconcile(make_document([package]), graphs, {"foo": action})

            for entry in packages_of(result.document):
                names = [c['name'] for c in entry['channels']]
                assert entry.get('defaultChannel') not in names
                assert entry['channels']

    def test_yaml_text_input(self):
        doc = ImageSetSynthesizer().synthesize(REF, [Selection("foo", "stable", "v1")])
        graphs = {"foo": make_graph("stable", {"stable": ["v2", "v1"]})}

        result = ImageSetReconciler().reconcile(dump_document(doc), graphs, {"foo": OperatorAction(update=True)})
        assert packages_of(result.document)[0]['channels'][0]['minVersion'] == "v2"

    def test_malformed_document_is_fatal(self):
        with pytest.raises(MalformedConfigError):
            ImageSetReconciler().reconcile({'kind': 'Other'}, {})


class TestCompareVersions:
    """Latest-version lookups for configured selections"""

    def test_version_info(self):
        selections = [
            Selection("foo", "stable", "v1"),
            Selection("bar", "beta", "v3"),
            Selection("gone", "stable", "v1"),
            Selection("baz", "old", "v1"),
        ]
        graphs = {
            "foo": make_graph("stable", {"stable": ["v2", "v1"]}),
            "bar": make_graph("stable", {"beta": ["v3"], "stable": ["v7"]}, package="bar"),
            "baz": make_graph("stable", {"stable": ["v1"]}, package="baz"),
        }

        foo, bar, gone, baz = ImageSetReconciler().compare_versions(selections, graphs)

        assert foo.latest_version == "v2" and foo.has_update
        assert not bar.has_update
        assert bar.default_channel == "stable" and bar.default_channel_version == "v7"
        assert gone.error and gone.latest_version is None
        assert "not found" in baz.error
        assert foo.to_dict()['hasUpdate'] is True
