#!/usr/bin/env python3
"""
Blue Button Finder - console harness.

Usage:
    python -m bluebutton                      # interactive menu
    python -m bluebutton check
    python -m bluebutton screen
    python -m bluebutton region "Browser toolbar"
    python -m bluebutton quick "Browser toolbar"
    python -m bluebutton file ./screenshot.png
    python -m bluebutton area 100 200 640 480 --save toolbar
    python -m bluebutton regions list
    python -m bluebutton mouse-test
"""

import argparse
import sys
import time
from dataclasses import dataclass
from typing import List, Optional

from dotenv import load_dotenv

from bluebutton.analysis.interaction import (
    InteractionAction,
    InteractionController,
    OutcomeKind,
)
from bluebutton.analysis.orchestrator import AnalysisOrchestrator, AnalysisResult
from bluebutton.capture.screen_capturer import ScreenCapturer
from bluebutton.capture.screenshot_saver import ScreenshotSaver
from bluebutton.geometry.mapper import needs_mismatch_adjustment
from bluebutton.geometry.models import (
    ButtonCandidate,
    CaptureRegion,
    InvalidRegionError,
    Point,
    ScreenDetection,
)
from bluebutton.input.mouse import MouseController, within_tolerance
from bluebutton.regions.region_store import RegionStore
from bluebutton.utils.config import Config, load_config
from bluebutton.utils.logging import ActionLogger, get_logger, setup_logging
from bluebutton.vision import prompts
from bluebutton.vision.ollama_client import ModelClientError, OllamaClient

logger = get_logger(__name__)

RULE = "=" * 35
MOUSE_TEST_TOLERANCE = 2
EXIT_OK = 0
EXIT_FAILED = 1
EXIT_NO_CONNECTION = 2


@dataclass
class Harness:
    """Everything a command needs, built once per process."""
    config: Config
    client: OllamaClient
    capturer: ScreenCapturer
    store: RegionStore
    mouse: MouseController
    orchestrator: AnalysisOrchestrator
    action_logger: Optional[ActionLogger] = None

    def controller(self, countdown_seconds: Optional[int] = None) -> InteractionController:
        settings = self.config.interaction
        return InteractionController(
            self.mouse,
            countdown_seconds=settings.click_countdown_seconds if countdown_seconds is None else countdown_seconds,
            position_tolerance=settings.position_tolerance_px,
            settle_delay=settings.settle_delay,
            action_logger=self.action_logger,
        )


def build_harness(config: Config, dry_run: bool = False) -> Harness:
    client = OllamaClient.from_config(config.ollama)
    capturer = ScreenCapturer()
    store = RegionStore(config.regions.storage_path)
    mouse = MouseController(dry_run=dry_run, press_release_gap=config.interaction.press_release_gap)
    action_logger = ActionLogger(config.logging.action_log_dir)
    saver = ScreenshotSaver(config.capture.screenshot_dir) if config.capture.save_screenshots else None

    orchestrator = AnalysisOrchestrator(
        client,
        capturer.get_screen_bounds,
        capturer=capturer,
        screenshot_saver=saver,
        action_logger=action_logger,
        content_num_predict=config.ollama.content_num_predict,
    )
    return Harness(config, client, capturer, store, mouse, orchestrator, action_logger)


def ask(prompt: str) -> str:
    """Read one answer; end of input counts as an empty answer."""
    try:
        return input(prompt).strip()
    except EOFError:
        return ""


def ask_int(prompt: str) -> Optional[int]:
    answer = ask(prompt)
    try:
        return int(answer)
    except ValueError:
        return None


def ask_yes(prompt: str) -> bool:
    return ask(prompt).lower() in ('y', 'yes')


def capture_countdown(seconds: int) -> None:
    print("Switch to the window/screen you want to analyze!")
    for i in range(seconds, 0, -1):
        print(f"Capturing in {i}...")
        time.sleep(1)


def print_result(result: AnalysisResult, title: str = "Blue Button Analysis") -> None:
    if not result.ok:
        print(f"[ERROR] Analysis failed: {result.diagnostic}")
        return

    print(f"\n{title}:")
    print(RULE)
    print(result.raw_text)
    print(RULE)

    if result.region_adjusted:
        print(f"[WARN] Capture region was rescaled to fit the current screen: {result.region}")

    if result.detections:
        print(f"\nFound {len(result.detections)} blue button(s):")
        for i, detection in enumerate(result.detections, 1):
            print(f"   {i}. {detection}")
    elif result.no_buttons_reported:
        print("\nNo blue buttons found")
    else:
        print("\n[WARN] Could not parse specific button details from AI response")
        print("The AI might have found buttons but not in the expected format")

    for candidate in result.unmapped:
        print(f"   - '{candidate.text}' (no coordinates reported)")

    print(f"\nPerformance: {result.response.performance_summary()}")
    if result.screenshot_path:
        print(f"Screenshot: {result.screenshot_path}")


def report_outcome(outcome) -> None:
    if outcome.kind is OutcomeKind.SKIPPED:
        print(outcome.reason)
        return
    detection = outcome.detection
    verb = "Clicked" if outcome.kind is OutcomeKind.CLICKED else "Moved to"
    print(f"[OK] {verb} '{detection.text}' at ({detection.screen_x}, {detection.screen_y})")
    if outcome.final_position is not None:
        pos = outcome.final_position
        print(f"Verification - Mouse is now at: ({pos.x}, {pos.y})")
    if outcome.position_mismatch:
        print("[WARN] Mouse position mismatch! The cursor did not land on the target.")


def choose_detection_index(detections: List[ScreenDetection]) -> Optional[int]:
    if len(detections) == 1:
        return None
    print("\nAvailable buttons:")
    for i, detection in enumerate(detections, 1):
        print(f"{i}. {detection.text} -> Screen({detection.screen_x}, {detection.screen_y})")
    return ask_int(f"Select button (1-{len(detections)}): ")


def offer_interaction(harness: Harness, detections: List[ScreenDetection]) -> None:
    """Move/click/skip menu shown after an analysis with detections."""
    if not detections:
        return

    print("\nMouse Interaction Options:")
    print("1. Move mouse to a button (no click)")
    print("2. Click on a button")
    print("3. Skip mouse interaction")
    choice = ask("Choose option (1-3): ")

    action = {'1': InteractionAction.MOVE, '2': InteractionAction.CLICK}.get(choice, InteractionAction.SKIP)
    controller = harness.controller(harness.config.interaction.quick_click_countdown_seconds)
    try:
        index = None if action is InteractionAction.SKIP else choose_detection_index(detections)
        if action is not InteractionAction.SKIP and len(detections) > 1 and index is None:
            print("[ERROR] Invalid button selection.")
            return
        outcome = controller.interact(detections, action, index)
    except (ValueError, IndexError) as e:
        print(f"[ERROR] {e}")
        return
    report_outcome(outcome)


def offer_fallbacks(harness: Harness, result: AnalysisResult) -> None:
    """Debug description and broader color search when nothing was found."""
    if not result.ok or result.detections or result.image is None:
        return
    if not ask_yes("\nRun general UI analysis for debugging? (y/n): "):
        return

    name = result.region.name if result.region else 'selected'
    print("\nDebug Analysis Results:")
    print(RULE)
    print(harness.orchestrator.debug_analysis(result.image, name))
    print(RULE)
    print("\nSuggestions:")
    for i, suggestion in enumerate(prompts.DEBUG_SUGGESTIONS, 1):
        print(f"   {i}. {suggestion}")

    if ask_yes("\nTry alternative color detection (broader search)? (y/n): "):
        alt = harness.orchestrator.alternative_detection(result.region, result.image)
        print_result(alt, "Alternative Detection Results")
        offer_interaction(harness, alt.detections)


def analyze_saved_region(harness: Harness, region: CaptureRegion) -> AnalysisResult:
    bounds = harness.capturer.get_screen_bounds()
    if needs_mismatch_adjustment(region, bounds):
        print("[WARN] This region appears to be from a different monitor setup!")
        print(f"Region extends to: {region.right}×{region.bottom}")
        print(f"Current screen: {bounds}")
        print("Coordinates will be automatically adjusted to fit your current screen.")

    print(f"Capturing {region}...")
    return harness.orchestrator.analyze_region(region)


def _offer_followups(harness: Harness, result: AnalysisResult, title: str) -> int:
    print_result(result, title)
    offer_fallbacks(harness, result)
    offer_interaction(harness, result.detections)
    return 0 if result.ok else 1


def _analyze_and_offer(harness: Harness, region: CaptureRegion) -> int:
    result = analyze_saved_region(harness, region)
    return _offer_followups(harness, result, f"{(region.name or 'region').upper()} Blue Button Analysis")


def select_region(harness: Harness, name: Optional[str]) -> Optional[CaptureRegion]:
    store = harness.store
    if name:
        region = store.get(name)
        if region is None:
            print(f"[ERROR] No saved region named '{name}'")
        return region

    regions = store.list_regions()
    if not regions:
        print("[ERROR] No saved regions available. Please create a saved region first.")
        return None

    print(f"Available saved regions ({len(regions)}):")
    for i, region in enumerate(regions, 1):
        print(f"{i}. {region}")
        print(f"   Created: {region.created_at or 'unknown'}")
    choice = ask_int(f"Select a region (1-{len(regions)}): ")
    try:
        return store.get_by_index(choice if choice is not None else 0)
    except IndexError:
        print("[ERROR] Invalid selection.")
        return None


def save_region_interactive(harness: Harness, region: CaptureRegion, name: Optional[str] = None) -> None:
    name = name or ask("Enter a name for this region: ")
    if not name:
        print("[ERROR] Invalid name. Region not saved.")
        return
    saved = harness.store.add(region.renamed(name))
    try:
        harness.store.save()
    except OSError as e:
        print(f"[ERROR] Could not save regions: {e}")
        return
    print(f"[OK] Region '{saved.name}' saved successfully!")


def cmd_check(harness: Harness, args) -> int:
    """Check that Ollama answers and the model is pulled."""
    host = harness.client.ollama_host
    if not harness.client.is_available():
        print(f"[ERROR] Cannot connect to Ollama. Make sure it's running on {host}")
        print("To start Ollama: run 'ollama serve'")
        return EXIT_NO_CONNECTION
    print("[OK] Ollama connection successful")
    if not harness.client.is_available(check_model=True):
        print(f"[WARN] Model {harness.client.model} not installed. Run: ollama pull {harness.client.model}")
        return EXIT_FAILED
    return EXIT_OK


def cmd_prompt(harness: Harness, args) -> int:
    """Plain text round-trip with the model."""
    print(f"Sending text request to {harness.client.model}...")
    try:
        reply = harness.client.generate(args.text or prompts.GREETING_PROMPT)
    except ModelClientError as e:
        print(f"[ERROR] {e}")
        return 1
    print(f"[OK] Model response: {reply.text}")
    return 0


def cmd_screen(harness: Harness, args) -> int:
    """Full screen capture and analysis."""
    capture_countdown(harness.config.capture.capture_delay_seconds)
    print("Capturing full screen...")
    result = harness.orchestrator.analyze_full_screen()
    return _offer_followups(harness, result, "FULL SCREEN Blue Button Analysis")


def cmd_region(harness: Harness, args) -> int:
    """Analyze a saved region."""
    region = select_region(harness, getattr(args, 'name', None))
    if region is None:
        return 1
    return _analyze_and_offer(harness, region)


def cmd_area(harness: Harness, args) -> int:
    """Analyze a rectangle given on the command line or typed in."""
    try:
        region = CaptureRegion(args.x, args.y, args.width, args.height, name=args.save or 'manual')
    except InvalidRegionError as e:
        print(f"[ERROR] {e}")
        return 1
    if args.save:
        save_region_interactive(harness, region, args.save)
    return _analyze_and_offer(harness, region)


def cmd_file(harness: Harness, args) -> int:
    """Analyze an image file (coordinates relative to the image)."""
    path = args.path or ask("Enter the path to an image file (or press Enter to skip): ")
    if not path:
        print("No image path provided. Skipping image test.")
        return 0
    try:
        result = harness.orchestrator.analyze_file(path)
    except FileNotFoundError as e:
        print(f"[ERROR] {e}")
        return 1
    print_result(result)
    return 0 if result.ok else 1


def cmd_quick(harness: Harness, args) -> int:
    """Saved region -> button analysis -> main content -> confirm -> auto-click."""
    region = select_region(harness, getattr(args, 'name', None))
    if region is None:
        return 1

    result = analyze_saved_region(harness, region)
    if not result.ok:
        print(f"[ERROR] Button analysis failed: {result.diagnostic}")
        return 1

    content = harness.orchestrator.analyze_main_content(result.image, region.name)

    print("\nCOMBINED ANALYSIS RESULTS")
    print(RULE)
    print(f"Region: {region.name}")
    print(f"Main Content: {content.description}")
    if result.detections:
        print(f"Found {len(result.detections)} blue button(s):")
        for i, detection in enumerate(result.detections, 1):
            print(f"   {i}. {detection}")
    else:
        print("No blue buttons detected")
    print(RULE)

    if not result.detections:
        print("[WARN] No buttons available for auto-click.")
        return 0

    print("\nAUTO-CLICK CONFIRMATION")
    if ask("Type 'YES' to confirm auto-click, or anything else to cancel: ").upper() != 'YES':
        print("Auto-click cancelled by user.")
        return 0

    index = None
    if len(result.detections) > 1:
        print("Multiple buttons found. Select which one to click:")
        for i, detection in enumerate(result.detections, 1):
            print(f"{i}. {detection.text}")
        index = ask_int(f"Select button (1-{len(result.detections)}): ")
        if index is None:
            print("[ERROR] Invalid button selection. Auto-click cancelled.")
            return 1

    try:
        outcome = harness.controller().interact(result.detections, InteractionAction.CLICK, index)
    except (ValueError, IndexError) as e:
        print(f"[ERROR] {e}. Auto-click cancelled.")
        return 1
    report_outcome(outcome)
    if result.screenshot_path:
        print(f"\nScreenshot saved: {result.screenshot_path}")
    return 0


def cmd_regions(harness: Harness, args) -> int:
    """List, add or remove saved regions."""
    store = harness.store
    if args.action == 'list':
        regions = store.list_regions()
        if not regions:
            print("No saved regions.")
        for i, region in enumerate(regions, 1):
            print(f"{i}. {region}  (created {region.created_at or 'unknown'})")
        return 0

    if args.action == 'add':
        if None in (args.x, args.y, args.width, args.height):
            print("[ERROR] add needs x y width height")
            return 1
        try:
            region = CaptureRegion(args.x, args.y, args.width, args.height, name=args.name)
        except InvalidRegionError as e:
            print(f"[ERROR] {e}")
            return 1
        save_region_interactive(harness, region, args.name)
        return 0

    if args.action == 'remove':
        if not store.remove(args.name):
            print(f"[ERROR] No saved region named '{args.name}'")
            return 1
        store.save()
        print(f"[OK] Region '{args.name}' removed")
        return 0

    return 1


def _verify_move(harness: Harness, x: int, y: int) -> None:
    moved = harness.mouse.move_to(x, y)
    time.sleep(0.5)
    pos = harness.mouse.position()
    print(f"Verification: Mouse is now at ({pos.x}, {pos.y})")
    if moved and within_tolerance(pos, Point(x, y), MOUSE_TEST_TOLERANCE):
        print("[OK] Mouse movement test PASSED!")
    else:
        print("[ERROR] Mouse movement test FAILED!")


def cmd_mouse_test(harness: Harness, args) -> int:
    """Diagnose cursor movement and clicking."""
    pos = harness.mouse.position()
    bounds = harness.capturer.get_screen_bounds()
    print(f"Current mouse position: ({pos.x}, {pos.y})")
    print(f"Screen size: {bounds}")
    print("\nTest options:")
    print("1. Move mouse to center of screen")
    print("2. Move mouse to specific coordinates")
    print("3. Click at current position")
    print("4. Move and click test")
    print("5. Cancel")
    choice = ask("Enter your choice (1-5): ")

    if choice == '1':
        center = bounds.center
        print(f"\nMoving mouse to screen center: ({center.x}, {center.y})")
        _verify_move(harness, center.x, center.y)
    elif choice in ('2', '4'):
        x = ask_int("Enter X coordinate: ")
        y = ask_int("Enter Y coordinate: ") if x is not None else None
        if x is None or y is None:
            print("[ERROR] Invalid coordinate.")
            return 1
        if choice == '2':
            _verify_move(harness, x, y)
        else:
            if not ask_yes("WARNING: This will perform an actual click! Continue? (y/n): "):
                print("Move and click test cancelled.")
                return 0
            target = ScreenDetection(
                candidate=ButtonCandidate(text="Test Button", position=Point(x, y)),
                screen=Point(x, y),
            )
            report_outcome(harness.controller().interact([target], InteractionAction.CLICK))
    elif choice == '3':
        if not ask_yes("WARNING: This will perform an actual click! Continue? (y/n): "):
            print("Click test cancelled.")
            return 0
        if harness.controller(harness.config.interaction.quick_click_countdown_seconds).countdown():
            harness.mouse.click()
            print("[OK] Click test completed!")
    else:
        print("Mouse control test cancelled.")
    return 0


def cmd_area_interactive(harness: Harness, args) -> int:
    """Menu variant of ``area``: type the rectangle in."""
    values = [ask_int(f"Enter {label}: ") for label in ('X', 'Y', 'width', 'height')]
    if None in values:
        print("[ERROR] Invalid number.")
        return 1
    try:
        region = CaptureRegion(*values, name='manual')
    except InvalidRegionError as e:
        print(f"[ERROR] {e}")
        return 1
    if ask_yes("Would you like to save this region for future use? (y/n): "):
        save_region_interactive(harness, region)
    return _analyze_and_offer(harness, region)


def run_menu(harness: Harness, args) -> int:
    """Interactive menu mirroring the manual test flow."""
    print("Ollama Vision Blue Button Test")
    print(RULE)

    print("\n1. Testing Ollama connection...")
    if cmd_check(harness, args) == EXIT_NO_CONNECTION:
        return EXIT_NO_CONNECTION

    print("\n2. Testing simple text prompt...")
    cmd_prompt(harness, argparse.Namespace(text=None))

    print("\n3. Image analysis")
    entries = [
        ("Full screen screenshot (entire desktop)", cmd_screen),
        ("Enter a region manually", cmd_area_interactive),
    ]
    if len(harness.store):
        entries += [
            (f"Use saved region ({len(harness.store)} available)", cmd_region),
            ("Quick Combined Test (saved region + button detection + auto-click)", cmd_quick),
        ]
    entries += [
        ("Test Mouse Control (move and click test)", cmd_mouse_test),
        ("Load image file", cmd_file),
    ]

    for i, (label, _) in enumerate(entries, 1):
        print(f"{i}. {label}")
    print(f"{len(entries) + 1}. Skip image test")

    choice = ask_int(f"Enter your choice (1-{len(entries) + 1}): ")
    if choice is None or not 1 <= choice <= len(entries):
        print("Skipping image test.")
        return 0

    _, command = entries[choice - 1]
    return command(harness, argparse.Namespace(name=None, path=None))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='bluebutton',
        description='Find blue buttons on screen with a local vision model'
    )
    parser.add_argument('--config', help='Path to config YAML')
    parser.add_argument('--log-level', help='Override log level')
    parser.add_argument('--dry-run', action='store_true', help="Don't move or click the real mouse")

    sub = parser.add_subparsers(dest='command')

    sub.add_parser('menu', help='Interactive menu (default)')
    sub.add_parser('check', help='Check Ollama connection')

    p = sub.add_parser('prompt', help='Send a text-only prompt')
    p.add_argument('text', nargs='?')

    sub.add_parser('screen', help='Analyze the full screen')

    p = sub.add_parser('region', help='Analyze a saved region')
    p.add_argument('name', nargs='?')

    p = sub.add_parser('quick', help='Saved region + main content + auto-click')
    p.add_argument('name', nargs='?')

    p = sub.add_parser('area', help='Analyze a rectangle')
    for field_name in ('x', 'y', 'width', 'height'):
        p.add_argument(field_name, type=int)
    p.add_argument('--save', metavar='NAME', help='Also save the rectangle under this name')

    p = sub.add_parser('file', help='Analyze an image file')
    p.add_argument('path', nargs='?')

    p = sub.add_parser('regions', help='Manage saved regions')
    p.add_argument('action', choices=['list', 'add', 'remove'])
    p.add_argument('name', nargs='?', default='')
    for field_name in ('x', 'y', 'width', 'height'):
        p.add_argument(field_name, type=int, nargs='?')

    sub.add_parser('mouse-test', help='Mouse movement and click diagnostics')
    return parser


COMMANDS = {
    None: run_menu,
    'menu': run_menu,
    'check': cmd_check,
    'prompt': cmd_prompt,
    'screen': cmd_screen,
    'region': cmd_region,
    'quick': cmd_quick,
    'area': cmd_area,
    'file': cmd_file,
    'regions': cmd_regions,
    'mouse-test': cmd_mouse_test,
}


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)

    config = load_config(args.config)
    if args.log_level:
        config.logging.level = args.log_level
    setup_logging(
        level=config.logging.level,
        log_dir=config.logging.log_dir,
        colored=config.logging.colored
    )

    if args.command == 'regions' and args.action in ('add', 'remove') and not args.name:
        print("[ERROR] A region name is required")
        return 1

    logger.info(f"Using model {config.ollama.model} at {config.ollama.host}")
    harness = build_harness(config, dry_run=args.dry_run)
    harness.store.load()

    try:
        return COMMANDS[args.command](harness, args)
    except KeyboardInterrupt:
        print("\nInterrupted.")
        return 130
    finally:
        harness.capturer.close()


if __name__ == "__main__":
    sys.exit(main())
