"""Run terser to produce minified code and a source map."""

import asyncio
import logging
import re
import shlex
import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence, Union

from .errors import MinificationError
from .sourcemap import PositionMappingTable

logger = logging.getLogger(__name__)

# Elm's curried-call helpers, safe to drop when their result is unused
PURE_WRAPPERS = [f"F{n}" for n in range(2, 10)] + [f"A{n}" for n in range(2, 10)]

_SOURCE_MAPPING_URL = re.compile(r"\n?//# sourceMappingURL=\S*\s*$")


class Aggressiveness(str, Enum):
    """How many unsafe whole-program assumptions the compressor may make."""

    SAFE = "safe"
    UNSAFE = "unsafe"
    PURE_WRAPPERS = "pure_wrappers"


@dataclass
class MinifierConfig:
    """Options passed to terser."""

    passes: int = 2
    preserve_names: bool = False
    aggressiveness: Aggressiveness = Aggressiveness.UNSAFE
    output_path: Optional[Path] = None

    def __post_init__(self):
        if self.passes < 1:
            raise ValueError(f"passes must be at least 1, got {self.passes}")
        self.aggressiveness = Aggressiveness(self.aggressiveness)

    def compress_options(self) -> str:
        options = [f"passes={self.passes}"]
        if self.aggressiveness is Aggressiveness.PURE_WRAPPERS:
            options.append(f"pure_funcs=[{','.join(PURE_WRAPPERS)}]")
        if self.aggressiveness is not Aggressiveness.SAFE:
            options.extend(["pure_getters=true", "keep_fargs=false", "unsafe_comps=true", "unsafe=true"])
        return ",".join(options)

    def terser_arguments(self) -> List[str]:
        arguments = ["--ecma", "5", "--module", "--compress", self.compress_options()]
        if not self.preserve_names:
            arguments.append("--mangle")
        arguments.append("--source-map")
        return arguments


@dataclass
class MinifiedOutput:
    """Minified program text with its position mapping table."""

    code: str
    mapping: PositionMappingTable


class TerserMinifier:
    """Minify JavaScript with the terser command-line tool."""

    def __init__(
        self,
        command: Union[str, Sequence[str]] = "terser",
        config: Optional[MinifierConfig] = None,
    ):
        """Initialize minifier.

        Args:
            command: Executable (and leading arguments) used to run terser
            config: Compression options
        """
        self.command = shlex.split(command) if isinstance(command, str) else list(command)
        self.config = config or MinifierConfig()

    async def minify(self, text: str) -> MinifiedOutput:
        """Minify program text.

        Args:
            text: Unminified JavaScript

        Returns:
            Minified code and its source map

        Raises:
            MinificationError: If terser cannot be run or produces no output
        """
        logger.info("Running terser")

        with tempfile.TemporaryDirectory(prefix="elmjs-inspector-") as tmp:
            input_path = Path(tmp) / "input.js"
            output_path = Path(tmp) / "output.js"
            map_path = Path(tmp) / "output.js.map"
            await asyncio.to_thread(input_path.write_text, text, encoding="utf-8")

            args = [*self.command, str(input_path), *self.config.terser_arguments(), "-o", str(output_path)]
            logger.debug(f"Executing: {' '.join(args)}")

            try:
                process = await asyncio.create_subprocess_exec(
                    *args,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                )
            except OSError as e:
                raise MinificationError(f"Could not start terser ({self.command[0]}): {e}")

            _, stderr = await process.communicate()
            if process.returncode != 0:
                message = stderr.decode("utf-8", errors="replace").strip()
                raise MinificationError(f"terser exited with status {process.returncode}: {message}")

            if not output_path.exists():
                raise MinificationError("terser produced no output file")
            if not map_path.exists():
                raise MinificationError("terser produced no source map")

            code = _SOURCE_MAPPING_URL.sub("", await asyncio.to_thread(output_path.read_text, encoding="utf-8"))
            raw_map = await asyncio.to_thread(map_path.read_text, encoding="utf-8")
            mapping = PositionMappingTable.from_json(raw_map)

        if self.config.output_path:
            await asyncio.to_thread(Path(self.config.output_path).write_text, code, encoding="utf-8")
            logger.info(f"Wrote minified code to {self.config.output_path}")

        logger.info(f"Minified {len(text)} characters to {len(code)} ({len(mapping)} mappings)")
        return MinifiedOutput(code=code, mapping=mapping)
