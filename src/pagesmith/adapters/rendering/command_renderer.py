from __future__ import annotations

import json
import logging
import subprocess
from dataclasses import dataclass, field
from typing import Optional, Sequence

from pagesmith.domain.errors import RenderError

logger = logging.getLogger(__name__)

_STDERR_TAIL = 2000


@dataclass(frozen=True, slots=True)
class CommandRenderer:
    """
    Renders a page by running an external command.

    The module name is appended to the command line, the flags object
    {"preamble": <json string>, "body": <text>} is written to stdin and stdout is the markup.
    """
    command: Sequence[str]
    timeout: Optional[float] = 60.0
    env: Optional[dict[str, str]] = field(default=None)

    def render(self, module: str, preamble_json: str, body: str) -> str:
        if not self.command:
            raise RenderError("no renderer command configured")

        cmd = [*self.command, module]
        flags = json.dumps({"preamble": preamble_json, "body": body}, ensure_ascii=False)

        try:
            cp = subprocess.run(
                cmd,
                input=flags,
                capture_output=True,
                text=True,
                encoding="utf-8",
                check=True,
                timeout=self.timeout,
                env=self.env,
            )
        except FileNotFoundError as e:
            raise RenderError(f"renderer not found: {self.command[0]}") from e
        except subprocess.TimeoutExpired as e:
            raise RenderError(f"renderer timed out after {self.timeout}s for module {module}") from e
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or "").strip()[-_STDERR_TAIL:]
            raise RenderError(
                f"renderer exited with {e.returncode} for module {module}: {stderr or 'no output'}"
            ) from e

        if cp.stderr:
            logger.warning("renderer (%s): %s", module, cp.stderr.strip()[-_STDERR_TAIL:])
        return cp.stdout
