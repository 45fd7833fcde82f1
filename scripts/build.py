#!/usr/bin/env python3
"""
Build script for Python Lambda functions

Packages each function directory under src/ into build/<function>.zip,
the archive the Pulumi stack uploads. Run it before `pulumi up`.
"""
import argparse
import os
import re
import shutil
import subprocess
import sys
import zipfile
from pathlib import Path
from typing import List, Optional

PROJECT_ROOT = Path(__file__).resolve().parent.parent
SRC_DIR = PROJECT_ROOT / "src"
BUILD_DIR = PROJECT_ROOT / "build"

# Lambda runs on Amazon Linux; wheels must match it, not the build host
LAMBDA_PLATFORM = "manylinux2014_x86_64"
DEFAULT_RUNTIME = "python3.12"

EXCLUDED = shutil.ignore_patterns("test_*.py", "__pycache__", "*.pyc", "requirements.txt")


def discover_functions(src_dir: Path) -> List[Path]:
    """Every non-hidden directory holding a lambda_function.py is a function."""
    return sorted(
        d for d in src_dir.iterdir()
        if d.is_dir() and not d.name.startswith((".", "_"))
        and (d / "lambda_function.py").is_file()
    )


def runtime_python_version(runtime: str) -> str:
    """Map a Lambda runtime identifier such as python3.11 to a pip --python-version."""
    match = re.fullmatch(r"python(3\.\d+)", runtime)
    if not match:
        raise ValueError(f"not a Python Lambda runtime: {runtime!r}")
    return match.group(1)


def lambda_runtime(value: str) -> str:
    try:
        runtime_python_version(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e
    return value


def install_requirements(requirements_file: Path, target_dir: Path, runtime: str = DEFAULT_RUNTIME) -> None:
    subprocess.run([
        sys.executable, "-m", "pip", "install",
        "-r", str(requirements_file),
        "-t", str(target_dir),
        "--platform", LAMBDA_PLATFORM,
        "--python-version", runtime_python_version(runtime),
        "--implementation", "cp",
        "--only-binary=:all:",
        "--upgrade",
        "--quiet",
    ], check=True)


def build_function(function_dir: Path, build_dir: Path, runtime: str = DEFAULT_RUNTIME) -> Path:
    """
    Package one function directory into a zip archive.

    Args:
        function_dir: Directory containing lambda_function.py
        build_dir: Directory the archive is written to
        runtime: Lambda runtime the wheels are fetched for; must match hello:runtime

    Returns:
        Path of the created archive
    """
    function_name = function_dir.name
    zip_path = build_dir / f"{function_name}.zip"
    build_dir.mkdir(parents=True, exist_ok=True)

    print(f"Building {function_name}...")

    # Create temporary directory for packaging
    temp_dir = build_dir / f"temp_{function_name}"
    if temp_dir.exists():
        shutil.rmtree(temp_dir)

    try:
        shutil.copytree(function_dir, temp_dir, ignore=EXCLUDED)

        requirements_file = function_dir / "requirements.txt"
        if requirements_file.exists():
            print(f"Installing dependencies for {function_name}...")
            install_requirements(requirements_file, temp_dir, runtime)

        print(f"Creating {zip_path.name}...")
        if zip_path.exists():
            zip_path.unlink()
        with zipfile.ZipFile(zip_path, 'w', zipfile.ZIP_DEFLATED) as zipf:
            for root, dirs, files in os.walk(temp_dir):
                dirs.sort()
                for file in sorted(files):
                    file_path = Path(root) / file
                    zipf.write(file_path, file_path.relative_to(temp_dir))
    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)

    print(f"{zip_path.name} created ({zip_path.stat().st_size} bytes)")
    return zip_path


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Package Lambda functions into deployment zip archives"
    )
    parser.add_argument(
        "--function",
        dest="functions",
        action="append",
        metavar="NAME",
        help="Function directory under src/ to build (repeatable, default: all)",
    )
    parser.add_argument("--src-dir", type=Path, default=SRC_DIR)
    parser.add_argument("--build-dir", type=Path, default=BUILD_DIR)
    parser.add_argument(
        "--runtime",
        type=lambda_runtime,
        default=DEFAULT_RUNTIME,
        help=f"Lambda runtime to fetch wheels for, same as hello:runtime (default: {DEFAULT_RUNTIME})",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main build function"""
    args = parse_args(argv)

    available = {d.name: d for d in discover_functions(args.src_dir)}
    selected = args.functions or sorted(available)

    unknown = [name for name in selected if name not in available]
    if unknown:
        print(f"Error: unknown function(s) {unknown}; available: {sorted(available)}")
        return 1

    print(f"Building Lambda functions: {selected}")
    for name in selected:
        build_function(available[name], args.build_dir, args.runtime)

    print("Build complete!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
