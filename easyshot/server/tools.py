"""Thin wrappers around the external programs the handlers shell out to."""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Optional, Sequence

from easyshot.shared.config import Settings
from easyshot.shared.errors import ToolError

logger = logging.getLogger(__name__)

STDERR_TAIL_CHARS = 500


def run_tool(
    args: Sequence[str],
    *,
    input: Optional[bytes] = None,
    capture: bool = True,
    capture_stderr: bool = True,
    timeout: Optional[float] = None,
) -> bytes:
    """Run ``args`` to completion and return its stdout.

    Tools that leave a background child holding their inherited descriptors
    (wl-copy serving the clipboard) must run with ``capture=False`` and
    ``capture_stderr=False``, otherwise this waits for that child to exit.

    Raises:
        ToolError: the binary is missing, exits non-zero, or times out.
    """
    tool = args[0]
    logger.debug("Running %s", " ".join(args))
    try:
        result = subprocess.run(
            list(args),
            input=input,
            stdin=None if input is not None else subprocess.DEVNULL,
            stdout=subprocess.PIPE if capture else subprocess.DEVNULL,
            stderr=subprocess.PIPE if capture_stderr else subprocess.DEVNULL,
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError as exc:
        raise ToolError(tool, "not found in PATH") from exc
    except subprocess.TimeoutExpired as exc:
        raise ToolError(tool, f"timed out after {timeout}s") from exc

    if result.returncode != 0:
        stderr = (result.stderr or b"").decode("utf-8", errors="replace").strip()
        detail = stderr[-STDERR_TAIL_CHARS:] if stderr else "no output"
        raise ToolError(tool, f"exited with status {result.returncode}: {detail}", result.returncode)
    return result.stdout or b""


def run_text(args: Sequence[str], **kwargs) -> str:
    return run_tool(args, **kwargs).decode("utf-8", errors="replace").strip()


def grim(geometry: str = "", output: str = "", filename: Optional[Path] = None) -> bytes:
    """Capture a PNG; returns the image bytes when no filename is given."""
    args = ["grim", "-t", "png"]
    if geometry:
        args += ["-g", geometry]
    if output:
        args += ["-o", output]
    args.append(str(filename) if filename else "-")
    return run_tool(args, capture=filename is None)


def slurp(color: str = "") -> str:
    """Interactive region selection; returns ``"x,y wxh"``."""
    args = ["slurp"]
    if color:
        args += ["-c", color]
    return run_text(args)


def wl_copy(data: bytes, mime_type: str = "image/png") -> None:
    run_tool(["wl-copy", "-t", mime_type], input=data, capture=False, capture_stderr=False)


def wl_copy_text(text: str) -> None:
    wl_copy(text.encode("utf-8"), "text/plain")


def wl_paste(mime_type: str = "image/png") -> bytes:
    return run_tool(["wl-paste", "--type", mime_type])


def wf_recorder_command(geometry: str, output: str, filename: Path) -> list[str]:
    args = ["wf-recorder"]
    if geometry:
        args += ["-g", geometry]
    if output:
        args += ["-o", output]
    args += ["-f", str(filename)]
    return args


def start_wf_recorder(geometry: str, output: str, filename: Path) -> subprocess.Popen:
    """Launch the recorder without waiting for it."""
    cmd = wf_recorder_command(geometry, output, filename)
    logger.info("Starting recorder: %s", " ".join(cmd))
    try:
        return subprocess.Popen(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    except FileNotFoundError as exc:
        raise ToolError("wf-recorder", "not found in PATH") from exc


def killall(process_name: str, signal_name: str = "SIGINT") -> bool:
    """Signal every process called ``process_name``; False if none matched."""
    try:
        run_tool(["killall", "-s", signal_name, process_name], capture=False, timeout=5)
    except ToolError as exc:
        logger.debug("killall %s: %s", process_name, exc)
        return False
    return True


def satty(input_file: Path, output_file: Path, early_exit: bool = True) -> None:
    args = ["satty", "--filename", str(input_file), "--output-filename", str(output_file)]
    if early_exit:
        args.append("--early-exit")
    run_tool(args, capture=False)


def zenity(text: str, entry_text: str) -> str:
    return run_text(["zenity", "--entry", "--text", text, "--entry-text", entry_text])


def aichat(model: str, image_path: Path, prompt: str) -> str:
    return run_text(["aichat", "--model", model, "--file", str(image_path), prompt])


def ffmpeg_command(input_file: Path, output_file: Path) -> list[str]:
    return [
        "ffmpeg",
        "-nostdin",
        "-y",
        "-i",
        f"file:{input_file}",
        "-vf",
        "scale='min(1920,iw)':-2",
        "-c:v",
        "libx264",
        "-preset",
        "veryfast",
        "-crf",
        "23",
        "-pix_fmt",
        "yuv420p",
        "-movflags",
        "+faststart",
        str(output_file),
    ]


def ffmpeg_convert(input_file: Path, output_file: Path) -> None:
    run_tool(ffmpeg_command(input_file, output_file), capture=False)


def obs_cli(settings: Settings, *args: str) -> str:
    """Run an obs-cli subcommand with the password fetched from pass(1)."""
    try:
        password = run_text(["pass", "show", settings.obs_password_entry])
    except ToolError as exc:
        raise ToolError("obs-cli", f"failed to get OBS password: {exc}") from exc
    cmd = [
        "obs-cli",
        "--host",
        settings.obs_host,
        "-p",
        str(settings.obs_port),
        "--password",
        password,
        *args,
    ]
    return run_text(cmd)


def wofi(prompt: str, options: Sequence[str]) -> str:
    return run_text(
        ["wofi", "--dmenu", "--prompt", prompt],
        input="\n".join(options).encode("utf-8"),
    )


def nautilus(file_uri: str) -> None:
    """Open the file manager without waiting for it."""
    if shutil.which("nautilus") is None:
        raise ToolError("nautilus", "not found in PATH")
    subprocess.Popen(
        ["nautilus", file_uri],
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        start_new_session=True,
    )
