"""NPM version resolver using semantic versioning."""

import logging
from typing import Dict, Iterable, List, Optional

import semantic_version

from ..parser import get_sanitized_version

logger = logging.getLogger(__name__)

ANY_RANGE = "*"


class NpmVersionResolver:
    """Evaluate npm range expressions against published version strings."""

    def parse_spec(self, spec_str: str) -> Optional[semantic_version.NpmSpec]:
        """Parse an npm range; ``None`` when the expression is not valid semver."""
        spec_str = spec_str.strip() or ANY_RANGE
        try:
            return semantic_version.NpmSpec(spec_str)
        except ValueError:
            return None

    @staticmethod
    def _parse_versions(candidates: Iterable[str]) -> List[semantic_version.Version]:
        parsed = []
        for v in candidates:
            try:
                parsed.append(semantic_version.Version(v))
            except ValueError:
                continue  # Skip invalid versions
        return parsed

    def pick_closest(
        self,
        candidates: Iterable[str],
        spec_str: str,
        dist_tags: Optional[Dict[str, str]] = None,
    ) -> Optional[str]:
        """Pick the highest candidate satisfying ``spec_str``.

        A range naming a dist-tag resolves to the tagged version when it is
        among the candidates.

        Returns:
            The selected version string, or None if nothing matches.
        """
        spec_str = get_sanitized_version(spec_str)
        candidates = list(candidates)
        tagged = (dist_tags or {}).get(spec_str.strip())
        if tagged is not None:
            return tagged if tagged in candidates else None

        spec = self.parse_spec(spec_str)
        if spec is None:
            logger.debug("Invalid semver spec: %s", spec_str)
            return None

        best = spec.select(self._parse_versions(candidates))
        if best is None:
            return None
        # Return the published spelling, not the re-serialized one.
        for v in candidates:
            try:
                if semantic_version.Version(v) == best:
                    return v
            except ValueError:
                continue
        return str(best)

    def satisfies(
        self,
        version: str,
        spec_str: str,
        dist_tags: Optional[Dict[str, str]] = None,
    ) -> bool:
        spec_str = get_sanitized_version(spec_str)
        tagged = (dist_tags or {}).get(spec_str.strip())
        if tagged is not None:
            return version == tagged
        spec = self.parse_spec(spec_str)
        if spec is None:
            return False
        try:
            return spec.match(semantic_version.Version(version))
        except ValueError:
            return False
