import json

from .lockfile import GitSource
from .utils.artifact_selector import fetch_url


def source_plan(node):
    if isinstance(node.source, GitSource):
        return {
            "type": "git",
            "url": node.source.url,
            "ref": node.source.reference,
            "rev": node.source.resolved_reference,
        }
    return {
        "type": "pypi",
        "file": node.artifact.file,
        "url": fetch_url(node.name, node.artifact),
        "hash": node.artifact.hash,
        "kind": node.artifact.python_tag,
        "platform-tag": node.artifact.platform_tag,
    }


def node_plan(node):
    if node is None:
        return {"filtered": True}
    return {
        "filtered": False,
        "version": node.version,
        "format": node.format,
        "broken": node.broken,
        "python-versions": node.python_versions,
        "source": source_plan(node),
        "dependencies": node.dependency_names,
        "native-deps": sorted(node.platform.native_deps),
        "patch-policy": node.platform.patch_policy,
    }


def application_plan(app):
    return {
        "name": app.name,
        "version": app.version,
        "format": app.format,
        "description": app.description,
        "license": app.license,
        "build-inputs": list(app.build_inputs),
        "dependencies": [ref.name for ref in app.propagated],
        "check-dependencies": [ref.name for ref in app.check_inputs],
    }


def render_plan(registry, environment, application=None):
    """JSON-serializable build plan for the build executor."""
    plan = {
        "environment": dict(environment.marker_environment(), extras=sorted(environment.extras)),
        "packages": {name: node_plan(registry[name]) for name in sorted(registry)},
    }
    if application is not None:
        plan["application"] = application_plan(application)
    return plan


def dumps(plan):
    return json.dumps(plan, indent=4, sort_keys=True)
