import tempfile
import unittest
from pathlib import Path

from mathdrill.config.config import ALLOWED_QUESTION_TYPES, ConfigError, DrillConfig, drill_config_from, load_config, validate_config
from mathdrill.drills.generator import QUESTION_TYPES


class ConfigTests(unittest.TestCase):
    def test_packaged_defaults(self) -> None:
        cfg = validate_config(load_config())
        self.assertEqual(cfg["drill"]["question_type"], "borrow")
        self.assertEqual(cfg["drill"]["range"], 20)
        self.assertEqual(cfg["review"]["slow_threshold_s"], 4.0)
        self.assertEqual(cfg["storage"]["backend"], "json")
        self.assertFalse(cfg["logging"]["explain"])

    def test_allowed_types_follow_generator(self) -> None:
        self.assertEqual(ALLOWED_QUESTION_TYPES, set(QUESTION_TYPES))
        cfg = validate_config({"drill": {"question_type": QUESTION_TYPES[-1]}})
        self.assertEqual(cfg["drill"]["question_type"], QUESTION_TYPES[-1])

    def test_missing_and_invalid_files(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(ConfigError):
                load_config(str(Path(tmp) / "absent.yml"))
            bad = Path(tmp) / "bad.yml"
            bad.write_text("drill: [unclosed", encoding="utf-8")
            with self.assertRaises(ConfigError):
                load_config(str(bad))
            scalar = Path(tmp) / "scalar.yml"
            scalar.write_text("42\n", encoding="utf-8")
            with self.assertRaises(ConfigError):
                load_config(str(scalar))

    def test_repairs_are_logged(self) -> None:
        raw = {
            "drill": {"question_type": "algebra", "range": 0, "question_count": "x", "borrow_ratio": 1.5, "timer_mode": "lap"},
            "storage": {"backend": "sqlite"},
            "review": {"slow_threshold_s": -1},
        }
        with self.assertLogs("mathdrill.config.config", level="WARNING"):
            cfg = validate_config(raw)
        drill = cfg["drill"]
        self.assertEqual(drill["question_type"], "borrow")
        self.assertEqual(drill["range"], 1)
        self.assertEqual(drill["question_count"], 10)
        self.assertEqual(drill["borrow_ratio"], 1.0)
        self.assertEqual(drill["timer_mode"], "global")
        self.assertEqual(cfg["storage"]["backend"], "json")
        self.assertEqual(cfg["review"]["slow_threshold_s"], 4.0)
        # input left untouched
        self.assertEqual(raw["drill"]["range"], 0)

    def test_drill_config(self) -> None:
        cfg = validate_config({})
        dc = drill_config_from(cfg, {"time_limit": 5, "question_count": 4})
        self.assertEqual(dc.total_time_limit, 20)
        self.assertEqual(DrillConfig.model_validate({"questionCount": 3, "timerMode": "per_question"}).question_count, 3)
        with self.assertRaises(ValueError):
            DrillConfig(borrow_ratio=2.0)


if __name__ == "__main__":
    unittest.main()
