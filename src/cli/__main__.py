#!/usr/bin/env python3
"""Terminal-based CLI for Help My Barber."""

import asyncio
import mimetypes
import sys
from pathlib import Path

from dotenv import load_dotenv

from core.api_client import GenerationClient
from core.config import DEFAULT_OUTPUT_DIR, configure_logging
from core.encoding import save_variations
from core.schemas import PendingItem
from core.validation import ValidationError, validate_image_file, validate_prompt
from core.workflow import GenerationWorkflow


def print_header() -> None:
    """Print the CLI header."""
    print("\n" + "=" * 60)
    print("  💈 Help My Barber CLI")
    print("  Haircut reference images from your photo")
    print("=" * 60)


def print_help() -> None:
    """Print available commands."""
    print("""
Available Commands:
  upload <path>  - Select a photo (starts over)
  generate       - Generate the front reference image
  angles         - Generate side and back views
  status         - Show the current photo, prompt and results
  save [dir]     - Save generated images to a directory
  help           - Show this help message
  exit           - Exit the application
  quit           - Exit the application
""")


def print_error(workflow: GenerationWorkflow) -> None:
    if workflow.error:
        print(f"\nError: {workflow.error.user_message}")


def upload(workflow: GenerationWorkflow, argument: str) -> None:
    """Read a photo from disk and hand it to the workflow."""
    if not argument:
        print("Usage: upload <path>")
        return

    path = Path(argument).expanduser()
    if not path.is_file():
        print(f"Error: File not found: {path}")
        return

    data = path.read_bytes()
    content_type = mimetypes.guess_type(path.name)[0]

    try:
        validate_image_file(data, content_type)
    except ValidationError as e:
        print(f"Error: {e}")
        return

    if workflow.upload_image(data, path.name, content_type):
        print(f"Photo ready: {path.name} ({len(data):,} bytes)")
    else:
        print_error(workflow)


def generate_front(workflow: GenerationWorkflow) -> None:
    """Ask for a haircut description and generate the front view."""
    if not workflow.view().can_generate_front:
        print("Upload a new photo first (use 'upload <path>').")
        return

    print("\nDescribe your desired haircut (e.g. 'Low taper fade'):")
    prompt = input("> ").strip()

    try:
        validate_prompt(prompt)
    except ValidationError as e:
        print(f"Error: {e}")
        return

    print("\nCreating your reference image...")
    if asyncio.run(workflow.generate_front(prompt)):
        print("Front view ready. Use 'angles' for side and back views, 'save' to export.")
    else:
        print_error(workflow)


def generate_angles(workflow: GenerationWorkflow) -> None:
    """Generate the side and back views."""
    if not workflow.view().can_generate_angles:
        print("Generate a front view first (use 'generate').")
        return

    print("\nCreating side and back views...")
    if asyncio.run(workflow.generate_angles()):
        print("Side and back views ready.")
    else:
        print_error(workflow)


def show_status(workflow: GenerationWorkflow) -> None:
    """Display the workflow state and results."""
    view = workflow.view()

    print(f"\nState: {view.state.value}")
    if view.image:
        print(f"Photo: {view.image.name} ({view.image.size:,} bytes)")
    if view.prompt:
        print(f"Haircut: {view.prompt}")
    if view.error:
        print(f"Error: {view.error}")

    if not view.items:
        print("No results yet.")
        return

    print("-" * 40)
    for item in view.items:
        if isinstance(item, PendingItem):
            print(f"  {item.angle.value:<6} generating...")
        elif item.variation.is_image:
            print(f"  {item.variation.angle.value:<6} image")
        else:
            print(f"  {item.variation.angle.value:<6} text: {item.variation.image[:60]}")


def save_results(workflow: GenerationWorkflow, argument: str) -> None:
    """Save generated variations to disk."""
    if not workflow.results:
        print("Nothing to save yet.")
        return

    output_dir = Path(argument).expanduser() if argument else DEFAULT_OUTPUT_DIR
    try:
        saved = save_variations(workflow.results, output_dir)
    except (OSError, ValueError) as e:
        print(f"Error saving results: {e}")
        return

    for path in saved:
        print(f"Saved: {path}")


def main() -> None:
    """Main CLI loop."""
    # Load environment variables
    load_dotenv()
    configure_logging("WARNING")

    workflow = GenerationWorkflow(GenerationClient())

    print_header()
    print_help()

    while True:
        try:
            command, _, argument = input("\n💈 barber> ").strip().partition(" ")
            command = command.lower()
            argument = argument.strip()

            if command in ("exit", "quit", "q"):
                print("\nGoodbye!")
                sys.exit(0)

            elif command in ("help", "h", "?"):
                print_help()

            elif command == "upload":
                upload(workflow, argument)

            elif command == "generate":
                generate_front(workflow)

            elif command == "angles":
                generate_angles(workflow)

            elif command == "status":
                show_status(workflow)

            elif command == "save":
                save_results(workflow, argument)

            elif command == "":
                continue

            else:
                print(f"Unknown command: {command}")
                print("Type 'help' for available commands.")

        except KeyboardInterrupt:
            print("\n\nInterrupted. Type 'exit' to quit.")
        except EOFError:
            print("\nGoodbye!")
            sys.exit(0)


if __name__ == "__main__":
    main()
