"""
LaTeX Compilation Module

Compilation is modeled as a narrow capability, Compiler.compile(source, output_dir,
timeout), so the render pipeline never depends on a concrete external tool.
LatexCompiler drives pdflatex (or a compatible binary) as a subprocess.
"""

import os
import re
import subprocess
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from PyPDF2 import PdfReader

from cvforge.contexts.rendering.logger import _log_debug

load_dotenv()

LATEX_COMPILER = os.getenv("LATEX_COMPILER", "pdflatex")
LATEX_TIMEOUT_S = float(os.getenv("LATEX_TIMEOUT_S", "30"))
# Templates have no cross-references, so one pass is enough
LATEX_NUM_PASSES = int(os.getenv("LATEX_NUM_PASSES", "1"))

OUTPUT_TAIL_CHARS = 2000


@dataclass
class CompilationResult:
    """
    Result of LaTeX compilation.

    Attributes:
        success: Whether compilation succeeded
        pdf_path: Path to generated PDF (None if failed)
        stdout: Standard output from the compiler
        stderr: Standard error from the compiler
        errors: List of parsed LaTeX errors
        warnings: List of parsed LaTeX warnings
        page_count: Number of pages in generated PDF (None if not available)
        timed_out: Whether the compiler was killed for exceeding its timeout
    """

    success: bool
    pdf_path: Optional[Path] = None
    stdout: str = ""
    stderr: str = ""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    page_count: Optional[int] = None
    timed_out: bool = False


def _parse_latex_log(log_content: str) -> tuple[List[str], List[str]]:
    """
    Parse LaTeX log file for errors and warnings.

    Args:
        log_content: Content of the .log file

    Returns:
        Tuple of (errors, warnings)
    """
    errors = []
    warnings = []

    # LaTeX error pattern: "! Error message"
    error_pattern = re.compile(r"^! (.+)$", re.MULTILINE)
    for match in error_pattern.finditer(log_content):
        errors.append(match.group(1).strip())

    # -file-line-error style: "./cv.tex:12: Undefined control sequence."
    file_line_pattern = re.compile(r"^[^\s:]+\.tex:\d+: (.+)$", re.MULTILINE)
    for match in file_line_pattern.finditer(log_content):
        message = match.group(1).strip()
        if message not in errors:
            errors.append(message)

    # Additional error patterns that don't start with "!"
    additional_error_patterns = [
        r"Undefined control sequence",
        r"File ended while scanning use of",
        r"Emergency stop",
    ]
    for pattern in additional_error_patterns:
        match = re.search(rf"({pattern}.*?)$", log_content, re.MULTILINE)
        if match and match.group(1) not in errors:
            errors.append(match.group(1))

    # Common warning patterns
    warning_patterns = [
        r"LaTeX Warning: (.+)",
        r"Package \w+ Warning: (.+)",
        r"Overfull \\hbox \((.+)\)",
        r"Underfull \\hbox \((.+)\)",
    ]
    for pattern in warning_patterns:
        for match in re.finditer(pattern, log_content, re.MULTILINE):
            warnings.append(match.group(1).strip())

    return errors, warnings


def page_count(pdf_path: Path) -> Optional[int]:
    """Get page count from PDF, or None if unreadable."""
    try:
        return len(PdfReader(str(pdf_path)).pages)
    except Exception:
        return None


def _tail(output) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        output = output.decode("utf-8", errors="replace")
    return output[-OUTPUT_TAIL_CHARS:]


class Compiler(ABC):
    """Capability: turn a source file into a document inside output_dir."""

    name: str = "compiler"

    @abstractmethod
    def compile(
        self, source_path: Path, output_dir: Path, timeout_s: float = LATEX_TIMEOUT_S
    ) -> CompilationResult:
        """
        Compile source_path, writing every output file into output_dir.

        Must never block past timeout_s and must report (not raise) compiler failures.
        """


class LatexCompiler(Compiler):
    """
    pdflatex-compatible subprocess compiler.

    Args:
        command: Compiler binary (default: LATEX_COMPILER env var, then pdflatex)
        num_passes: Compiler passes (default: LATEX_NUM_PASSES env var)
    """

    def __init__(self, command: str = LATEX_COMPILER, num_passes: int = LATEX_NUM_PASSES):
        self.command = command
        self.num_passes = max(1, num_passes)
        self.name = command

    def build_command(self, source_path: Path, output_dir: Path) -> List[str]:
        return [
            self.command,
            "-interaction=nonstopmode",
            "-halt-on-error",
            "-file-line-error",
            f"-output-directory={output_dir}",
            str(source_path),
        ]

    def compile(
        self, source_path: Path, output_dir: Path, timeout_s: float = LATEX_TIMEOUT_S
    ) -> CompilationResult:
        """
        Run the compiler with a hard deadline across all passes.

        subprocess.run kills the child when the timeout expires; the result is
        reported with timed_out=True.
        """
        source_path = Path(source_path)
        output_dir = Path(output_dir)
        deadline = time.monotonic() + timeout_s

        all_stdout = []
        all_stderr = []
        success = True

        # Multiple passes only matter for cross-references
        for pass_number in range(1, self.num_passes + 1):
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return CompilationResult(
                    success=False,
                    stdout=_tail("\n".join(all_stdout)),
                    errors=[f"Compilation timed out after {timeout_s:g}s"],
                    timed_out=True,
                )

            _log_debug(f"  {self.command} pass {pass_number}/{self.num_passes}")
            try:
                result = subprocess.run(
                    self.build_command(source_path, output_dir),
                    cwd=output_dir,
                    capture_output=True,
                    text=True,
                    encoding="utf-8",
                    errors="replace",  # Replace invalid UTF-8 bytes instead of crashing
                    timeout=remaining,
                    stdin=subprocess.DEVNULL,
                )
            except subprocess.TimeoutExpired as e:
                return CompilationResult(
                    success=False,
                    stdout=_tail(e.stdout),
                    stderr=_tail(e.stderr),
                    errors=[f"Compilation timed out after {timeout_s:g}s"],
                    timed_out=True,
                )
            except FileNotFoundError:
                return CompilationResult(
                    success=False, errors=[f"Compiler not found: {self.command}"]
                )

            all_stdout.append(result.stdout)
            all_stderr.append(result.stderr)

            # Stop on fatal errors; log parsing below distinguishes errors from warnings
            if result.returncode != 0:
                success = False
                break

        # Parse log file for detailed errors and warnings
        log_file = output_dir / f"{source_path.stem}.log"
        errors = []
        warnings = []
        if log_file.exists():
            # pdflatex writes log files in latin-1 encoding (font metadata contains non-UTF-8)
            errors, warnings = _parse_latex_log(log_file.read_text(encoding="latin-1"))

        pdf_path = output_dir / f"{source_path.stem}.pdf"
        if not success and not errors:
            errors.append(f"{self.command} exited with a non-zero status")
        if not pdf_path.exists():
            success = False
            if not errors:
                errors.append("PDF file was not generated")

        return CompilationResult(
            success=success,
            pdf_path=pdf_path if pdf_path.exists() else None,
            stdout=_tail("\n".join(all_stdout)),
            stderr=_tail("\n".join(all_stderr)),
            errors=errors,
            warnings=warnings,
            page_count=page_count(pdf_path) if pdf_path.exists() else None,
        )
