from __future__ import annotations

import json
import os
import subprocess
import sys
import tempfile
import unittest
from pathlib import Path


class TestBuildCommandWritesLog(unittest.TestCase):
    def test_build_creates_run_log_on_config_error(self) -> None:
        repo_root = Path(__file__).resolve().parents[1]

        with tempfile.TemporaryDirectory() as td:
            out_dir = Path(td) / "out"
            out_dir.mkdir(parents=True, exist_ok=True)

            missing_cfg = Path(td) / "missing_config.yaml"

            env = dict(os.environ)
            existing_pp = env.get("PYTHONPATH", "")
            env["PYTHONPATH"] = (
                f"{repo_root}{os.pathsep}{existing_pp}" if existing_pp else str(repo_root)
            )

            proc = subprocess.run(
                [
                    sys.executable,
                    "-m",
                    "tea_book",
                    "build",
                    "--config",
                    str(missing_cfg),
                    "--out",
                    str(out_dir),
                ],
                cwd=repo_root,
                env=env,
                capture_output=True,
                text=True,
            )

            self.assertEqual(proc.returncode, 2, msg=proc.stderr)

            log_path = out_dir / "run.log"
            self.assertTrue(log_path.exists())

            records = [
                json.loads(ln)
                for ln in log_path.read_text(encoding="utf-8").splitlines()
                if ln.strip()
            ]

        events = [r.get("event") for r in records]
        self.assertIn("build_command_started", events)
        self.assertIn("build_command_failed", events)

        failed = next(r for r in records if r.get("event") == "build_command_failed")
        self.assertEqual(failed["data"]["error"]["type"], "ConfigError")

    def test_offline_build_logs_completion(self) -> None:
        repo_root = Path(__file__).resolve().parents[1]

        with tempfile.TemporaryDirectory() as td:
            out_dir = Path(td) / "out"

            env = dict(os.environ)
            existing_pp = env.get("PYTHONPATH", "")
            env["PYTHONPATH"] = (
                f"{repo_root}{os.pathsep}{existing_pp}" if existing_pp else str(repo_root)
            )

            proc = subprocess.run(
                [sys.executable, "-m", "tea_book", "build", "--offline", "--out", str(out_dir)],
                cwd=repo_root,
                env=env,
                capture_output=True,
                text=True,
            )
            self.assertEqual(proc.returncode, 0, msg=proc.stderr)
            printed = dict(ln.split("=", 1) for ln in proc.stdout.splitlines() if "=" in ln)

            records = [
                json.loads(ln)
                for ln in (out_dir / "run.log").read_text(encoding="utf-8").splitlines()
                if ln.strip()
            ]

        events = [r["event"] for r in records]
        self.assertEqual(events[0], "build_command_started")
        self.assertEqual(events[-1], "build_command_completed")
        self.assertEqual({r["session_id"] for r in records}, {printed["session_id"]})
        self.assertEqual(printed["run_log"], str(out_dir / "run.log"))


if __name__ == "__main__":
    unittest.main()
