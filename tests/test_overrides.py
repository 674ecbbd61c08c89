import types
import unittest
from unittest.mock import patch
from lockbuilder import environment, overrides
from lockbuilder.errors import InvalidOverride
from lockbuilder.lockfile import FileEntry, LockedPackage
from lockbuilder.registry import build_registry

LINUX = {
    "python-version": "3.11",
    "os-name": "posix",
    "sys-platform": "linux",
    "platform-machine": "x86_64",
    "platform-system": "Linux",
    "implementation-name": "cpython",
    "platforms": ["manylinux_2_17_x86_64", "linux_x86_64"],
}


def package(name, version="1.0"):
    return LockedPackage(name=name, version=version, files=(FileEntry(f"{name}-{version}.tar.gz", "sha256:x"),))


@patch("lockbuilder.registry.logger")
@patch("lockbuilder.overrides.logger")
class TestOverrides(unittest.TestCase):

    def setUp(self):
        self.env = environment.from_config(LINUX)

    def build(self, packages, table):
        return build_registry(packages, table, self.env)

    def test_from_spec(self, mock_logger, mock_registry_logger):
        spec = {
            "native-deps": ["libxml2", "libxslt"],
            "patch-policy": "2014",
            "extra-dependencies": ["Cython"],
        }
        registry = self.build([package("lxml"), package("cython")], {"lxml": overrides.from_spec(spec)})
        lxml = registry["lxml"]
        self.assertEqual(lxml.platform.native_deps, frozenset(["libxml2", "libxslt"]))
        self.assertEqual(lxml.platform.patch_policy, "2014")
        self.assertTrue(lxml.platform.needs_patching)
        self.assertEqual(lxml.dependency_names, ["cython"])

    def test_from_spec_broken_and_drop(self, mock_logger, mock_registry_logger):
        packages = [
            LockedPackage(
                name="foo",
                version="1.0",
                files=(FileEntry("foo-1.0.tar.gz", "sha256:x"),),
                dependencies=(),
            ),
        ]
        registry = self.build(packages, {"foo": overrides.from_spec({"broken": True, "drop-dependencies": ["bar"]})})
        self.assertTrue(registry["foo"].broken)
        self.assertEqual(registry["foo"].dependency_names, [])

    def test_unknown_spec_keys_warn(self, mock_logger, mock_registry_logger):
        overrides.from_spec({"native-deps": [], "colour": "blue"})
        mock_logger.warning.assert_called_once_with("Ignoring unknown override keys: colour")

    def test_compose_applies_in_order(self, mock_logger, mock_registry_logger):
        def first(final, prev, node):
            return node.replace(version=node.version + "-a")

        def second(final, prev, node):
            return node.replace(version=node.version + "-b")

        registry = self.build([package("foo")], {"foo": overrides.compose(first, None, second)})
        self.assertEqual(registry["foo"].version, "1.0-a-b")
        self.assertIs(overrides.compose(), overrides.identity)

    def test_merge_composes_per_name(self, mock_logger, mock_registry_logger):
        def bump(final, prev, node):
            return node.replace(version="2.0")

        def tag(final, prev, node):
            return node.replace(version=node.version + "+local")

        merged = overrides.merge({"Foo": bump}, {"foo": tag}, None)
        self.assertEqual(list(merged), ["foo"])
        self.assertEqual(self.build([package("foo")], merged)["foo"].version, "2.0+local")

    def test_default_overrides(self, mock_logger, mock_registry_logger):
        registry = self.build([package("pillow", "10.0.0")], overrides.default_overrides())
        self.assertIn("libjpeg", registry["pillow"].platform.native_deps)

    def test_from_config_layers(self, mock_logger, mock_registry_logger):
        conf = {"overrides": {"packages": {"lxml": {"native-deps": ["libiconv"]}}}}
        registry = self.build([package("lxml")], overrides.from_config(conf))
        self.assertEqual(
            registry["lxml"].platform.native_deps,
            frozenset(["libxml2", "libxslt", "libiconv"]),
        )

        conf["overrides"]["use-defaults"] = False
        registry = self.build([package("lxml")], overrides.from_config(conf))
        self.assertEqual(registry["lxml"].platform.native_deps, frozenset(["libiconv"]))

    @patch("lockbuilder.overrides.importlib")
    def test_load_module(self, mock_importlib, mock_logger, mock_registry_logger):
        mock_import = mock_importlib.import_module
        mock_import.return_value = types.SimpleNamespace(OVERRIDES={"foo": overrides.identity})
        self.assertEqual(overrides.load_module("project_overrides"), {"foo": overrides.identity})
        mock_import.assert_called_once_with("project_overrides")

    @patch("lockbuilder.overrides.importlib")
    def test_load_module_without_table(self, mock_importlib, mock_logger, mock_registry_logger):
        mock_import = mock_importlib.import_module
        mock_import.return_value = types.SimpleNamespace()
        with self.assertRaises(InvalidOverride) as ctx:
            overrides.load_module("project_overrides")
        self.assertEqual(ctx.exception.field, "overrides.module")

    @patch("lockbuilder.overrides.importlib")
    def test_load_missing_module(self, mock_importlib, mock_logger, mock_registry_logger):
        mock_importlib.import_module.side_effect = ImportError("No module named 'nope'")
        with self.assertRaises(InvalidOverride):
            overrides.load_module("nope")

if __name__ == "__main__":
    unittest.main()
