"""
Git command runner with dubious ownership handling.

Runs git commands with an environment that marks the searched repository as
a safe directory, so that repositories owned by another user (sudo, Docker,
CI checkouts) can still be read.
"""

import os
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Optional


def get_git_environment(repo_dir: Path) -> Dict[str, str]:
    """
    Get environment variables for git commands to handle dubious ownership.

    Args:
        repo_dir: Path to the repository directory

    Returns:
        Dictionary of environment variables for git commands
    """
    env = os.environ.copy()

    env["GIT_CONFIG_COUNT"] = "1"
    env["GIT_CONFIG_KEY_0"] = "safe.directory"
    env["GIT_CONFIG_VALUE_0"] = str(repo_dir.resolve())

    # Shift caller-provided GIT_CONFIG_* entries to make room for index 0
    config_count = 1
    for key in os.environ:
        if not key.startswith("GIT_CONFIG_KEY_"):
            continue
        idx = key.replace("GIT_CONFIG_KEY_", "")
        if idx.isdigit() and int(idx) > 0:
            new_idx = int(idx) + 1
            env[f"GIT_CONFIG_KEY_{new_idx}"] = os.environ[key]
            if f"GIT_CONFIG_VALUE_{idx}" in os.environ:
                env[f"GIT_CONFIG_VALUE_{new_idx}"] = os.environ[
                    f"GIT_CONFIG_VALUE_{idx}"
                ]
            config_count = max(config_count, new_idx + 1)

    env["GIT_CONFIG_COUNT"] = str(config_count)

    return env


def run_git_command(
    cmd: List[str],
    cwd: Path,
    check: bool = True,
    capture_output: bool = True,
    text: bool = True,
    timeout: Optional[float] = None,
    **kwargs,
) -> subprocess.CompletedProcess:
    """
    Run a git command with proper environment handling for dubious ownership.

    Args:
        cmd: Git command as a list (e.g., ["git", "status"])
        cwd: Working directory for the command
        check: Whether to raise CalledProcessError on non-zero exit
        capture_output: Whether to capture stdout and stderr
        text: Whether to decode output as text
        timeout: Optional timeout in seconds
        **kwargs: Additional arguments to pass to subprocess.run

    Returns:
        CompletedProcess instance with the command result

    Raises:
        subprocess.CalledProcessError: If check=True and command fails
        subprocess.TimeoutExpired: If timeout is exceeded
    """
    if not cmd or cmd[0] != "git":
        raise ValueError("Command must start with 'git'")

    env = get_git_environment(cwd)
    if "env" in kwargs:
        env.update(kwargs.pop("env"))

    try:
        return subprocess.run(
            cmd,
            cwd=cwd,
            check=check,
            capture_output=capture_output,
            text=text,
            timeout=timeout,
            env=env,
            **kwargs,
        )
    except subprocess.CalledProcessError as e:
        log_git_failure(
            e,
            cmd,
            cwd,
            returncode=e.returncode,
            stdout=e.stdout or "",
            stderr=e.stderr or "",
        )
        raise


def start_git_process(cmd: List[str], cwd: Path) -> subprocess.Popen:
    """
    Start a long-running git process with binary stdin/stdout pipes.

    Used for ``git cat-file --batch``, which answers one object request per
    line written to its stdin.

    Args:
        cmd: Git command as a list
        cwd: Working directory for the command

    Returns:
        The running Popen instance
    """
    if not cmd or cmd[0] != "git":
        raise ValueError("Command must start with 'git'")

    return subprocess.Popen(
        cmd,
        cwd=cwd,
        stdin=subprocess.PIPE,
        stdout=subprocess.PIPE,
        stderr=subprocess.DEVNULL,
        env=get_git_environment(cwd),
    )


def is_git_repository(repo_dir: Path) -> bool:
    """
    Check if a directory is a git repository (bare or with a work tree).

    Args:
        repo_dir: Path to check

    Returns:
        True if the directory is a git repository, False otherwise
    """
    try:
        run_git_command(
            ["git", "rev-parse", "--git-dir"],
            cwd=repo_dir,
            check=True,
        )
        return True
    except (subprocess.CalledProcessError, FileNotFoundError, NotADirectoryError):
        return False


def log_git_failure(
    exception: BaseException, cmd: List[str], cwd: Path, **details: Any
) -> None:
    """Record a failed git command through the exception logger, if initialized.

    Args:
        exception: The error raised for the command
        cmd: Git command that failed
        cwd: Working directory
        **details: Extra context such as returncode, stdout and stderr
    """
    from .exception_logger import ExceptionLogger

    logger = ExceptionLogger.get_instance()
    if logger:
        context: Dict[str, Any] = {"git_command": " ".join(cmd), "cwd": str(cwd)}
        for key, value in details.items():
            if isinstance(value, bytes):
                value = value.decode("utf-8", errors="replace")
            context[key] = value
        logged_exception = Exception(f"Git command failed: {' '.join(cmd)}")
        logged_exception.__cause__ = exception
        logger.log_exception(logged_exception, context=context)
