import argparse
import asyncio
import mimetypes
import sys
from pathlib import Path

from dotenv import load_dotenv

from core.api_client import GenerationClient
from core.config import configure_logging
from core.encoding import save_variations
from core.validation import ValidationError, validate_image_file, validate_prompt
from core.workflow import GenerationWorkflow


async def run(workflow: GenerationWorkflow, prompt: str, angles: bool) -> bool:
    """Generate the front view and, if requested, the side and back views."""
    print("Creating your reference image...")
    if not await workflow.generate_front(prompt):
        return False

    if angles:
        print("Creating side and back views...")
        if not await workflow.generate_angles():
            # Keep the front view even when the angles fail
            print(f"Warning: {workflow.error.user_message}", file=sys.stderr)

    return True


def main():
    """Main entry point for one-shot reference image generation."""
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="Generate haircut reference images from a photo and a description"
    )
    parser.add_argument("photo", type=str, help="Path to your photo (JPG, PNG or WebP)")
    parser.add_argument(
        "prompt",
        type=str,
        help="Description of the haircut you want, e.g. 'Low taper fade'",
    )
    parser.add_argument(
        "--angles",
        action="store_true",
        help="Also generate side and back views",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=str,
        default="output",
        help="Directory for the generated images (default: output)",
    )
    parser.add_argument(
        "--api-url",
        type=str,
        default=None,
        help="Base URL of the generation service",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")

    args = parser.parse_args()
    configure_logging("INFO" if args.verbose else "WARNING")

    photo = Path(args.photo)
    if not photo.is_file():
        print(f"Error: File not found: {photo}", file=sys.stderr)
        sys.exit(1)

    data = photo.read_bytes()
    content_type = mimetypes.guess_type(photo.name)[0]

    try:
        validate_image_file(data, content_type)
        validate_prompt(args.prompt)
    except ValidationError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    workflow = GenerationWorkflow(GenerationClient(base_url=args.api_url))
    if not workflow.upload_image(data, photo.name, content_type):
        print(f"Error: {workflow.error.user_message}", file=sys.stderr)
        sys.exit(1)

    print(f"Haircut: {args.prompt}")
    print()

    if not asyncio.run(run(workflow, args.prompt, args.angles)):
        print(f"Error: {workflow.error.user_message}", file=sys.stderr)
        sys.exit(1)

    saved = save_variations(workflow.results, Path(args.output))
    print()
    for path in saved:
        print(f"Saved: {path.resolve()}")


if __name__ == "__main__":
    main()
