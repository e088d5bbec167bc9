"""
Analysis Orchestrator

Drives one "find the blue buttons" cycle:
capture -> model request -> reply parsing -> coordinate mapping.

Network and model failures end the cycle with an empty result and a
diagnostic; nothing is retried and no exception reaches the caller.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from bluebutton.capture.screen_capturer import to_png_bytes, load_image_file
from bluebutton.geometry.mapper import CoordinateMapper
from bluebutton.geometry.models import (
    ButtonCandidate,
    CaptureRegion,
    ScreenBounds,
    ScreenDetection,
)
from bluebutton.utils.logging import get_logger
from bluebutton.vision import prompts
from bluebutton.vision.content_analysis import MainContentAnalysis, parse_main_content
from bluebutton.vision.ollama_client import ModelClientError, ModelResponse
from bluebutton.vision.response_parser import ResponseParser, reports_no_buttons

logger = get_logger(__name__)


@dataclass
class AnalysisResult:
    """Outcome of one analysis cycle."""
    region: Optional[CaptureRegion] = None
    detections: List[ScreenDetection] = field(default_factory=list)
    candidates: List[ButtonCandidate] = field(default_factory=list)
    response: Optional[ModelResponse] = None
    diagnostic: str = ""
    no_buttons_reported: bool = False
    region_adjusted: bool = False
    screenshot_path: Optional[Path] = None
    image: Optional[bytes] = field(default=None, repr=False)

    @property
    def ok(self) -> bool:
        """True when the model answered (even if it found nothing)."""
        return self.response is not None

    @property
    def raw_text(self) -> str:
        return self.response.text if self.response else ""

    @property
    def unmapped(self) -> List[ButtonCandidate]:
        """Candidates the reply gave a label but no coordinates."""
        return [c for c in self.candidates if not c.has_position]


class AnalysisOrchestrator:
    """
    Runs button analysis against the vision model.

    Usage:
        orchestrator = AnalysisOrchestrator(client, capturer.get_screen_bounds, capturer)
        result = orchestrator.analyze_region(saved_region)
        for detection in result.detections:
            print(detection)
    """

    def __init__(
        self,
        client,
        screen_bounds: Callable[[], ScreenBounds],
        capturer=None,
        screenshot_saver=None,
        action_logger=None,
        parser: Optional[ResponseParser] = None,
        content_num_predict: int = 50
    ):
        """
        Args:
            client: OllamaClient (anything with generate(prompt, image, options))
            screen_bounds: Returns the current screen geometry
            capturer: ScreenCapturer used by the capture-and-analyze helpers
            screenshot_saver: Optional ScreenshotSaver for captured images
            action_logger: Optional ActionLogger for analysis summaries
            parser: Reply parser (a fresh ResponseParser by default)
            content_num_predict: Token limit for main content answers
        """
        self.client = client
        self.screen_bounds = screen_bounds
        self.capturer = capturer
        self.screenshot_saver = screenshot_saver
        self.action_logger = action_logger
        self.parser = parser or ResponseParser()
        self.content_num_predict = content_num_predict

    def mapper(self) -> CoordinateMapper:
        """Mapper bound to the screen geometry as it is right now."""
        return CoordinateMapper(self.screen_bounds())

    def _request(self, prompt: str, image: bytes, options: Optional[dict] = None):
        """Returns (response, diagnostic); exactly one is set."""
        try:
            return self.client.generate(prompt, image=image, options=options), ""
        except ModelClientError as e:
            logger.error(f"Button analysis failed: {e}")
            return None, str(e)

    def analyze(
        self,
        region: CaptureRegion,
        image: bytes,
        original_region: Optional[CaptureRegion] = None,
        prompt: str = prompts.BUTTON_PROMPT,
        screenshot_path: Optional[Path] = None
    ) -> AnalysisResult:
        """
        Analyze an image captured from ``region`` for buttons.

        Args:
            region: Rectangle the image was captured from (its offset is applied)
            image: Encoded image bytes
            original_region: Saved region the capture came from, used for
                mismatch adjustment when it no longer fits the screen
            prompt: Instruction sent with the image
            screenshot_path: Where the captured image was saved (None if not saved)

        Returns:
            AnalysisResult; empty detections with a diagnostic on failure
        """
        result = AnalysisResult(region=region, image=image, screenshot_path=screenshot_path)

        response, diagnostic = self._request(prompt, image)
        if response is None:
            result.diagnostic = diagnostic
            self._log(result)
            return result

        result.response = response
        result.no_buttons_reported = reports_no_buttons(response.text)
        result.candidates = self.parser.parse(response.text)

        if not result.candidates:
            result.diagnostic = "Could not parse specific button details from AI response"
            logger.warning(result.diagnostic)

        result.detections = self.mapper().map_candidates(
            result.candidates, region, original_region
        )
        skipped = len(result.unmapped)
        if skipped:
            logger.warning(f"{skipped} button(s) reported without coordinates")

        logger.info(f"Analysis of {region}: {len(result.detections)} detection(s)")
        self._log(result)
        return result

    def _log(self, result: AnalysisResult) -> None:
        if self.action_logger is None:
            return
        self.action_logger.log_analysis(
            result.region.name if result.region else '',
            len(result.detections),
            result.diagnostic,
            str(result.screenshot_path) if result.screenshot_path else None
        )

    def _save(self, image, label: str) -> Optional[Path]:
        if self.screenshot_saver is None:
            return None
        try:
            return self.screenshot_saver.save(image, label)
        except OSError as e:
            logger.warning(f"Could not save screenshot: {e}")
            return None

    def capture(self, region: CaptureRegion):
        """
        Capture a (possibly stale) saved region.

        Returns:
            (capture_region, image, region_adjusted)
        """
        if self.capturer is None:
            raise RuntimeError("No screen capturer configured")

        capture_region = self.mapper().prepare_capture(region)
        image = self.capturer.capture_region(capture_region)
        return capture_region, image, capture_region != region

    def analyze_region(self, region: CaptureRegion) -> AnalysisResult:
        """Capture a region (rescaling it first if needed) and analyze it."""
        capture_region, image, adjusted = self.capture(region)
        screenshot_path = self._save(image, region.name or 'region')

        result = self.analyze(
            capture_region, to_png_bytes(image),
            original_region=region, screenshot_path=screenshot_path
        )
        result.region_adjusted = adjusted
        return result

    def analyze_full_screen(self) -> AnalysisResult:
        """Capture the whole desktop and analyze it."""
        if self.capturer is None:
            raise RuntimeError("No screen capturer configured")

        bounds = self.screen_bounds()
        region = CaptureRegion(bounds.x, bounds.y, bounds.width, bounds.height, name='full screen')
        image = self.capturer.capture_full()
        screenshot_path = self._save(image, 'full_screen')

        return self.analyze(region, to_png_bytes(image), screenshot_path=screenshot_path)

    def analyze_file(self, path: str) -> AnalysisResult:
        """
        Analyze an image file. Positions are reported relative to the image,
        so the capture offset is (0, 0).
        """
        data, size = load_image_file(path)
        if size is None:
            bounds = self.screen_bounds()
            size = (bounds.width, bounds.height)

        region = CaptureRegion(0, 0, size[0], size[1], name=Path(path).name)
        return self.analyze(region, data)

    def alternative_detection(self, region: CaptureRegion, image: bytes) -> AnalysisResult:
        """Broader "anything blue-ish" search, parsed like the normal reply."""
        return self.analyze(region, image, prompt=prompts.alternative_color_prompt(region.name or 'selected'))

    def debug_analysis(self, image: bytes, region_name: str) -> str:
        """Free-form description of all visible elements and colors."""
        response, diagnostic = self._request(prompts.debug_ui_prompt(region_name), image)
        if response is None:
            return f"Debug analysis failed: {diagnostic}"
        return response.text

    def analyze_main_content(self, image: bytes, region_name: str) -> MainContentAnalysis:
        """One-sentence summary of what the image mainly shows."""
        response, diagnostic = self._request(
            prompts.main_content_prompt(region_name),
            image,
            options={'num_predict': self.content_num_predict}
        )
        if response is None:
            return MainContentAnalysis(description=f"Analysis failed: {diagnostic}")
        return parse_main_content(response.text)
