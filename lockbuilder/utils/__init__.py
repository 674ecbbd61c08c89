from .artifact_selector import DistributionKind, SelectedArtifact, fetch_url, select_artifact
from .constraints import satisfies
from .markers import evaluate
from .platform_resolver import PlatformRequirements, resolve_platform
