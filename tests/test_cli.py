"""
Tests for the console harness commands.

Commands run against fakes with scripted answers to input(); countdowns
are set to zero so nothing waits.
"""

import argparse
import json
import logging

import pytest
import yaml
from PIL import Image

from bluebutton import cli
from bluebutton.analysis.orchestrator import AnalysisOrchestrator
from bluebutton.geometry.models import CaptureRegion
from bluebutton.input.mouse import MouseController
from bluebutton.regions.region_store import RegionStore
from bluebutton.utils.config import Config
from bluebutton.vision.ollama_client import ModelConnectionError

from conftest import FakeCapturer, FakeClient, FakeMouseBackend

OK_REPLY = 'BUTTON 1:\nText: "OK"\nPosition: (50, 50)'


@pytest.fixture
def answers(monkeypatch):
    """Queue of answers returned by input()."""
    queue = []

    def fake_input(prompt=''):
        if not queue:
            raise EOFError
        return queue.pop(0)

    monkeypatch.setattr('builtins.input', fake_input)
    monkeypatch.setattr(cli.time, 'sleep', lambda seconds: None)
    return queue


@pytest.fixture
def make_harness(tmp_path):
    def _make(replies=None, available=True, regions=()):
        config = Config()
        config.interaction.click_countdown_seconds = 0
        config.interaction.quick_click_countdown_seconds = 0
        config.interaction.settle_delay = 0
        config.interaction.press_release_gap = 0
        config.capture.capture_delay_seconds = 0

        client = FakeClient(replies, available=available)
        capturer = FakeCapturer()
        store = RegionStore(str(tmp_path / 'regions.json'))
        for region in regions:
            store.add(region)
        backend = FakeMouseBackend()
        mouse = MouseController(backend=backend, press_release_gap=0)
        orchestrator = AnalysisOrchestrator(client, capturer.get_screen_bounds, capturer=capturer)

        harness = cli.Harness(config, client, capturer, store, mouse, orchestrator)
        harness.backend = backend
        return harness
    return _make


class TestCommands:
    """Tests for individual cmd_* functions."""

    def test_check_ok(self, make_harness, capsys):
        assert cli.cmd_check(make_harness(), argparse.Namespace()) == cli.EXIT_OK
        assert "Ollama connection successful" in capsys.readouterr().out

    def test_check_unreachable(self, make_harness, capsys):
        harness = make_harness(available=False)

        assert cli.cmd_check(harness, argparse.Namespace()) == cli.EXIT_NO_CONNECTION
        assert "ollama serve" in capsys.readouterr().out

    def test_prompt(self, make_harness, capsys):
        harness = make_harness(["Hello there!"])

        assert cli.cmd_prompt(harness, argparse.Namespace(text=None)) == 0
        assert "Hello there!" in capsys.readouterr().out
        assert harness.client.requests[0]['image'] is None

    def test_region_click_flow(self, make_harness, answers):
        """Test saved region -> analysis -> click the only detection."""
        region = CaptureRegion(1000, 800, 200, 100, name="dialog")
        harness = make_harness([OK_REPLY], regions=[region])
        answers.extend(['2'])

        assert cli.cmd_region(harness, argparse.Namespace(name="Dialog")) == 0

        assert ('move_to', 1050, 850) in harness.backend.calls
        assert harness.backend.clicks == 1

    def test_region_skip_interaction(self, make_harness, answers):
        harness = make_harness([OK_REPLY], regions=[CaptureRegion(0, 0, 300, 300, name="r")])
        answers.extend(['3'])

        cli.cmd_region(harness, argparse.Namespace(name="r"))

        assert harness.backend.calls == []

    def test_region_unknown_name(self, make_harness, capsys):
        assert cli.cmd_region(make_harness(), argparse.Namespace(name="nope")) == 1
        assert "No saved region named 'nope'" in capsys.readouterr().out

    def test_region_menu_selection(self, make_harness, answers):
        regions = [CaptureRegion(0, 0, 100, 100, name="a"), CaptureRegion(500, 500, 100, 100, name="b")]
        harness = make_harness([OK_REPLY], regions=regions)
        answers.extend(['2', '1'])

        cli.cmd_region(harness, argparse.Namespace(name=None))

        assert harness.backend.calls == [('move_to', 550, 550)]

    def test_no_buttons_offers_debug_and_alternative(self, make_harness, answers, capsys):
        harness = make_harness(
            ["No blue buttons detected", "A grey toolbar with icons", 'BUTTON 1:\nText: "Teal"\nPosition: (5, 5)'],
            regions=[CaptureRegion(100, 100, 200, 200, name="bar")],
        )
        answers.extend(['y', 'y', '1'])

        cli.cmd_region(harness, argparse.Namespace(name="bar"))

        out = capsys.readouterr().out
        assert "No blue buttons found" in out
        assert "A grey toolbar with icons" in out
        assert harness.backend.calls == [('move_to', 105, 105)]

    def test_model_failure_reports_diagnostic(self, make_harness, capsys):
        harness = make_harness(regions=[CaptureRegion(0, 0, 10, 10, name="r")])
        harness.client.error = ModelConnectionError("Ollama request failed: refused")

        assert cli.cmd_region(harness, argparse.Namespace(name="r")) == 1
        assert "refused" in capsys.readouterr().out

    def test_quick_confirmed_clicks(self, make_harness, answers, capsys):
        region = CaptureRegion(1000, 800, 200, 100, name="dialog")
        harness = make_harness([OK_REPLY, "A confirmation dialog."], regions=[region])
        answers.extend(['YES'])

        assert cli.cmd_quick(harness, argparse.Namespace(name="dialog")) == 0

        out = capsys.readouterr().out
        assert "A confirmation dialog." in out
        assert harness.backend.clicks == 1
        assert harness.client.requests[1]['options'] == {'num_predict': 50}

    def test_quick_requires_exact_confirmation(self, make_harness, answers):
        region = CaptureRegion(1000, 800, 200, 100, name="dialog")
        harness = make_harness([OK_REPLY, "A dialog."], regions=[region])
        answers.extend(['y'])

        cli.cmd_quick(harness, argparse.Namespace(name="dialog"))

        assert harness.backend.calls == []

    def test_area_saves_region(self, make_harness, answers, tmp_path):
        harness = make_harness([OK_REPLY])
        answers.extend(['3'])
        args = argparse.Namespace(x=10, y=20, width=300, height=200, save="panel")

        cli.cmd_area(harness, args)

        data = json.loads((tmp_path / 'regions.json').read_text())
        assert [r['name'] for r in data['regions']] == ["panel"]

    def test_area_rejects_empty_rectangle(self, make_harness, capsys):
        args = argparse.Namespace(x=0, y=0, width=0, height=10, save=None)

        assert cli.cmd_area(make_harness(), args) == 1
        assert "[ERROR]" in capsys.readouterr().out

    def test_file(self, make_harness, tmp_path, capsys):
        path = tmp_path / "shot.png"
        Image.new('RGB', (200, 100)).save(path)

        assert cli.cmd_file(make_harness([OK_REPLY]), argparse.Namespace(path=str(path))) == 0
        assert "Screen(50, 50)" in capsys.readouterr().out

    def test_regions_remove(self, make_harness, capsys):
        harness = make_harness(regions=[CaptureRegion(0, 0, 10, 10, name="old")])

        assert cli.cmd_regions(harness, argparse.Namespace(action='remove', name='OLD')) == 0
        assert len(harness.store) == 0
        assert harness.store.exists()

    def test_mouse_test_center(self, make_harness, answers, capsys):
        harness = make_harness()
        answers.extend(['1'])

        cli.cmd_mouse_test(harness, argparse.Namespace())

        assert harness.backend.calls == [('move_to', 960, 540)]
        assert "PASSED" in capsys.readouterr().out

    def test_menu_skip(self, make_harness, answers, capsys):
        harness = make_harness(["Hi!"])
        answers.extend(['9'])

        assert cli.run_menu(harness, argparse.Namespace()) == 0
        assert "Skipping image test." in capsys.readouterr().out

    def test_menu_stops_without_connection(self, make_harness):
        harness = make_harness(available=False)

        assert cli.run_menu(harness, argparse.Namespace()) == cli.EXIT_NO_CONNECTION
        assert harness.client.requests == []


class TestMain:
    """Tests for argument parsing and wiring through main()."""

    @pytest.fixture
    def config_path(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        for name in ('OLLAMA_HOST', 'OLLAMA_MODEL', 'BLUEBUTTON_LOG_LEVEL'):
            monkeypatch.delenv(name, raising=False)
        path = tmp_path / 'config.yaml'
        path.write_text(yaml.safe_dump({
            'regions': {'storage_path': str(tmp_path / 'regions.json')},
            'logging': {'log_dir': str(tmp_path / 'logs'), 'action_log_dir': str(tmp_path / 'actions')},
            'capture': {'screenshot_dir': str(tmp_path / 'shots')},
        }))
        yield str(path)
        root = logging.getLogger()
        for handler in list(root.handlers):
            handler.close()
        root.handlers = []

    def test_regions_add_list_remove(self, config_path, capsys):
        assert cli.main(['--config', config_path, 'regions', 'add', 'Toolbar', '10', '20', '300', '40']) == 0
        assert cli.main(['--config', config_path, 'regions', 'list']) == 0
        assert "Toolbar (300×40 at 10,20)" in capsys.readouterr().out

        assert cli.main(['--config', config_path, 'regions', 'remove', 'toolbar']) == 0
        assert cli.main(['--config', config_path, 'regions', 'remove', 'toolbar']) == 1

    def test_regions_add_requires_name(self, config_path):
        assert cli.main(['--config', config_path, 'regions', 'add']) == 1
