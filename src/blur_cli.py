"""
Command-line front end for the Gaussian blur core.

Two modes:
1. One-shot - blur ``--input`` into ``--output`` and exit
2. Interactive - prompt for sigma, radius and filename until the user stops
"""
from __future__ import annotations

import argparse
import os
import sys
import time
from typing import Any, Callable, Dict, List, Optional

import yaml

from blur_errors import ConvolveError
from blur_settings import DEFAULT_SETTINGS, load_settings, merge_settings, parse_radius, parse_sigma
from convolution import METHODS, convolve_buffer, validate_request
from gaussian import radius_for_sigma
from image_io import load_image, save_image
from pixel_buffer import PixelBuffer


# ============================================================================
# Blur Job
# ============================================================================

def resolve_radius(sigma: float, radius: Optional[int]) -> int:
    """Use the explicit radius, or three-sigma support when none is given."""
    if radius is None:
        return radius_for_sigma(sigma)
    return radius


def blur_file(
    input_path: str,
    output_path: str,
    sigma: float,
    radius: Optional[int],
    method: str = "direct",
    overwrite: bool = True,
) -> PixelBuffer:
    """
    Load, blur and save one image.

    Raises:
        ConvolveError: On invalid sigma, radius or method
        FileExistsError: If the output exists and overwriting is disabled
        FileNotFoundError, ValueError, IOError: On image I/O failures
    """
    radius = resolve_radius(sigma, radius)
    validate_request(sigma, radius, method)
    if not overwrite and os.path.exists(output_path):
        raise FileExistsError(f"Output already exists: {output_path}")

    source = load_image(input_path)
    result = convolve_buffer(source, sigma, radius, method)
    save_image(output_path, result)
    return result


def run_once(config: Dict[str, Any], input_path: str) -> int:
    gauss_cfg = config.get("gaussian", {})
    out_cfg = config.get("output", {})
    output_path = out_cfg.get("path", "result-image.png")

    start = time.perf_counter()
    try:
        result = blur_file(
            input_path,
            output_path,
            gauss_cfg.get("sigma", 1.0),
            gauss_cfg.get("radius"),
            gauss_cfg.get("method", "direct"),
            bool(out_cfg.get("overwrite", True)),
        )
    except (ConvolveError, OSError, ValueError) as exc:
        print(f"[ERROR] {exc}")
        return 1

    elapsed = time.perf_counter() - start
    print(f"[INFO] Blurred {result.width}x{result.height} image in {elapsed:.2f}s")
    print(f"[INFO] Saved: {output_path}")
    return 0


# ============================================================================
# Interactive Loop
# ============================================================================

def _ask_again(prompt: Callable[[str], str]) -> bool:
    return prompt("Try again? (y/n): ").strip().lower() == "y"


def run_interactive(
    config: Dict[str, Any],
    prompt: Optional[Callable[[str], str]] = None,
    first_filename: Optional[str] = None,
) -> None:
    """
    Prompt for sigma, radius and filename; report errors and offer to retry.

    ``first_filename`` answers the filename prompt of the first round only.
    """
    prompt = prompt or input
    gauss_cfg = config.get("gaussian", {})
    out_cfg = config.get("output", {})
    output_path = out_cfg.get("path", "result-image.png")
    method = gauss_cfg.get("method", "direct")

    while True:
        try:
            sigma = parse_sigma(prompt("Enter sigma: "))
            radius = parse_radius(prompt("Enter radius: "))
            if first_filename is not None:
                filename, first_filename = first_filename, None
                print(f"[INFO] Image: {filename}")
            else:
                filename = prompt("Enter image filename: ").strip()
            blur_file(
                filename,
                output_path,
                sigma,
                radius,
                method,
                bool(out_cfg.get("overwrite", True)),
            )
            print(f"[INFO] Saved: {output_path}")
        except (ConvolveError, OSError, ValueError) as exc:
            print(f"[ERROR] {exc}")

        if not _ask_again(prompt):
            break


# ============================================================================
# Entry Point
# ============================================================================

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Gaussian blur by 2D convolution")
    parser.add_argument("--config", "-c", default="settings.yaml")
    parser.add_argument("--input", "-i", default=None, help="Image to blur")
    parser.add_argument("--output", "-o", default=None, help="Where to write the result")
    parser.add_argument("--sigma", type=float, default=None)
    parser.add_argument("--radius", type=int, default=None)
    parser.add_argument("--method", choices=METHODS, default=None)
    parser.add_argument(
        "--interactive",
        action="store_true",
        help="Prompt for parameters (default when no --input is given); --input answers the first filename prompt",
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> Dict[str, Any]:
    """Defaults, then the settings file, then command-line flags."""
    try:
        file_cfg = load_settings(args.config)
    except FileNotFoundError:
        print(f"[INFO] Config not found: {args.config}, using defaults")
        file_cfg = {}
    config = merge_settings(DEFAULT_SETTINGS, file_cfg)
    for section in ("gaussian", "output"):
        if not isinstance(config.get(section), dict):
            raise ValueError(f"'{section}' must be a mapping, got {config.get(section)!r}")

    if args.sigma is not None:
        config["gaussian"]["sigma"] = args.sigma
    if args.radius is not None:
        config["gaussian"]["radius"] = args.radius
    if args.method is not None:
        config["gaussian"]["method"] = args.method
    if args.output is not None:
        config["output"]["path"] = args.output
    return config


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    try:
        config = build_config(args)
    except (yaml.YAMLError, ValueError) as exc:
        print(f"[ERROR] Invalid config {args.config}: {exc}")
        return 1

    try:
        if args.interactive or args.input is None:
            run_interactive(config, first_filename=args.input)
            return 0
        return run_once(config, args.input)
    except EOFError:
        return 0
    except KeyboardInterrupt:
        print("\nStopped.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
