import json
import os
import shutil
import stat
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch
from uuid import uuid4

from loguru import logger

from claws_assistant.app_config import DEFAULT_MODEL, config_dir, load_json_config, parse_app_config
from claws_assistant.bootstrap import bootstrap_runtime
from claws_assistant.logging_config import default_consumers, setup_logging
from tests.fakes import FakeBedrockClient, FakeDocsSearch, FakeLogSearch, FakeResourceQuery

PROJECT_ROOT = Path(__file__).resolve().parents[1]


class AppConfigTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp_dir = PROJECT_ROOT / ".test-artifacts" / f"config-{uuid4().hex}"
        self._tmp_dir.mkdir(parents=True, exist_ok=True)

    def tearDown(self) -> None:
        shutil.rmtree(self._tmp_dir, ignore_errors=True)

    def test_defaults(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            app = parse_app_config({}, directory=self._tmp_dir)
        self.assertEqual(DEFAULT_MODEL, app.model)
        self.assertEqual(16000, app.max_tokens)
        self.assertEqual(8000, app.thinking_budget)
        self.assertIsNone(app.temperature)
        self.assertEqual(100, app.max_sessions)
        self.assertTrue(app.save_sessions)
        self.assertEqual(15, app.max_tool_rounds)
        self.assertEqual(50, app.max_tool_calls_per_query)
        self.assertEqual(10.0, app.docs_search_timeout)
        self.assertIsNone(app.profile)
        self.assertIsNone(app.region)
        self.assertEqual(self._tmp_dir, app.config_dir)

    def test_values_and_environment_overrides(self) -> None:
        config = {
            "Model": "amazon.nova-pro-v1:0",
            "MaxTokens": "4096",
            "Temperature": 0.4,
            "SaveSessions": "false",
            "MaxSessions": 10,
            "Profile": "from-file",
            "Region": "us-east-1",
        }
        with patch.dict(os.environ, {"CLAWS_AI_PROFILE": "from-env"}, clear=True):
            app = parse_app_config(config, directory=self._tmp_dir)
        self.assertEqual("amazon.nova-pro-v1:0", app.model)
        self.assertEqual(4096, app.max_tokens)
        self.assertEqual(0.4, app.temperature)
        self.assertFalse(app.save_sessions)
        self.assertEqual(10, app.max_sessions)
        self.assertEqual("from-env", app.profile)
        self.assertEqual("us-east-1", app.region)

    def test_config_dir_override(self) -> None:
        with patch.dict(os.environ, {"CLAWS_CONFIG_DIR": str(self._tmp_dir)}, clear=True):
            self.assertEqual(self._tmp_dir, config_dir())

    def test_load_json_config_prefers_config_dir(self) -> None:
        (self._tmp_dir / "assistant.json").write_text(json.dumps({"MaxTokens": 123}))
        with patch("claws_assistant.app_config.load_dotenv"):
            self.assertEqual({"MaxTokens": 123}, load_json_config(self._tmp_dir))


class LoggingConfigTests(unittest.TestCase):
    def tearDown(self) -> None:
        logger.remove()

    def test_default_file_sink_lives_in_config_dir(self) -> None:
        consumers = default_consumers(Path("/cfg"))
        self.assertEqual({"type": "file", "path": str(Path("/cfg") / "logs" / "assistant.log")}, consumers[1])

    def test_file_consumer_creates_private_log_dir(self) -> None:
        tmp_dir = PROJECT_ROOT / ".test-artifacts" / f"logging-{uuid4().hex}"
        self.addCleanup(shutil.rmtree, tmp_dir, True)
        descriptions = setup_logging("INFO", config_dir=tmp_dir)
        logger.info("session store ready")
        logger.remove()

        log_file = tmp_dir / "logs" / "assistant.log"
        self.assertEqual(["console (stderr, WARNING)", f"file ({log_file}, INFO)"], descriptions)
        self.assertEqual(0o700, stat.S_IMODE(os.stat(log_file.parent).st_mode))
        self.assertIn("session store ready", log_file.read_text())

    def test_unknown_consumers_are_skipped(self) -> None:
        descriptions = setup_logging("DEBUG", [{"type": "console"}, {"type": "syslog"}])
        self.assertEqual(["console (stderr, DEBUG)"], descriptions)


class BootstrapTests(unittest.TestCase):
    def test_wires_runtime(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            app = parse_app_config({"SaveSessions": False}, directory=Path("unused"))
        resources = FakeResourceQuery({("lambda", "functions"): []})

        runtime = bootstrap_runtime(
            app,
            resources,
            client=FakeBedrockClient(),
            log_search=FakeLogSearch(),
            docs_search=FakeDocsSearch(),
            configure_logging=False,
        )

        self.assertEqual(5, len(runtime.tools))
        self.assertEqual(DEFAULT_MODEL, runtime.provider.model_id)
        self.assertTrue(runtime.provider.reasoning_enabled)
        self.assertFalse(runtime.sessions.enabled)
        self.assertIn("<available_services>\nlambda\n</available_services>", runtime.engine.system_prompt)

    def test_creates_bedrock_client_from_profile_and_region(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            app = parse_app_config({"Profile": "dev", "Region": "us-west-2", "SaveSessions": False})
        fake_session = MagicMock()
        with patch("claws_assistant.providers.bedrock_provider.boto3.Session", return_value=fake_session) as session_cls:
            bootstrap_runtime(app, FakeResourceQuery(), configure_logging=False)
        session_cls.assert_called_once_with(profile_name="dev", region_name="us-west-2")
        fake_session.client.assert_called_once_with("bedrock-runtime")


if __name__ == "__main__":
    unittest.main()
