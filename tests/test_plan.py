import json
import unittest
from unittest.mock import patch

from lockbuilder import environment
from lockbuilder.lockfile import DependencyEdge, FileEntry, GitSource, LockedPackage
from lockbuilder.plan import dumps, node_plan, render_plan
from lockbuilder.registry import build_registry


@patch("lockbuilder.registry.logger")
class TestPlan(unittest.TestCase):

    def setUp(self):
        self.env = environment.from_config({
            "python-version": "3.11",
            "os-name": "posix",
            "sys-platform": "linux",
            "platform-machine": "x86_64",
            "implementation-name": "cpython",
            "platforms": ["manylinux_2_17_x86_64"],
        })
        self.registry = build_registry([
            LockedPackage(
                name="foo",
                version="1.0",
                dependencies=(DependencyEdge("bar"), DependencyEdge("lib")),
                files=(FileEntry("foo-1.0-py3-none-any.whl", "sha256:foo"),),
            ),
            LockedPackage(name="bar", version="2.0", marker='os_name == "nt"'),
            LockedPackage(
                name="lib",
                version="0.1",
                source=GitSource("https://github.com/example/lib.git", "main", "abc123"),
            ),
        ], None, self.env)

    def test_filtered_node(self, mock_logger):
        self.assertEqual(node_plan(None), {"filtered": True})

    def test_render_plan(self, mock_logger):
        plan = render_plan(self.registry, self.env)
        self.assertEqual(sorted(plan["packages"]), ["bar", "foo", "lib"])
        self.assertEqual(plan["packages"]["bar"], {"filtered": True})

        foo = plan["packages"]["foo"]
        self.assertEqual(foo["format"], "wheel")
        self.assertEqual(foo["dependencies"], ["bar", "lib"])
        self.assertEqual(foo["source"]["kind"], "py3")
        self.assertEqual(
            foo["source"]["url"],
            "https://files.pythonhosted.org/packages/py3/f/foo/foo-1.0-py3-none-any.whl",
        )
        self.assertIsNone(foo["patch-policy"])

        lib = plan["packages"]["lib"]
        self.assertEqual(lib["format"], "setuptools")
        self.assertEqual(lib["source"], {
            "type": "git",
            "url": "https://github.com/example/lib.git",
            "ref": "main",
            "rev": "abc123",
        })

        self.assertEqual(plan["environment"]["python_full_version"], "3.11.0")
        self.assertEqual(plan["environment"]["extras"], [])
        self.assertNotIn("application", plan)

    def test_dumps_is_stable_json(self, mock_logger):
        plan = render_plan(self.registry, self.env)
        text = dumps(plan)
        self.assertEqual(json.loads(text), plan)
        self.assertEqual(text, dumps(render_plan(self.registry, self.env)))

if __name__ == "__main__":
    unittest.main()
