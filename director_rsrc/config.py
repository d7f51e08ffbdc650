"""Runtime settings for resource managers."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Mapping

from .toolbox.intl import ScriptCode, active_script

log = logging.getLogger(__name__)

ENV_SCRIPT = "DIRECTOR_RSRC_SCRIPT"
ENV_SKIP_BROKEN = "DIRECTOR_RSRC_SKIP_BROKEN"

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """How a :class:`ResourceManager` decodes and searches.

    ``script`` is the text encoding for Pascal strings; it defaults to the
    process-wide active script.  With ``skip_source_errors`` a source that
    fails to read is logged and skipped instead of failing the lookup.
    """

    script: ScriptCode = field(default_factory=active_script)
    skip_source_errors: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ
        kwargs = {}
        if env.get(ENV_SCRIPT):
            kwargs["script"] = ScriptCode.from_name(env[ENV_SCRIPT])
        if env.get(ENV_SKIP_BROKEN):
            kwargs["skip_source_errors"] = env[ENV_SKIP_BROKEN].strip().lower() in _TRUE_VALUES
        settings = cls(**kwargs)
        log.debug("Settings from environment: %s", settings)
        return settings
