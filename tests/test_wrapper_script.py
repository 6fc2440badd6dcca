import os
import subprocess
import sys
import unittest
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parents[1]


class TestWrapperScript(unittest.TestCase):
    def test_wrapper_runs_cli_from_project_root(self) -> None:
        env = dict(os.environ)
        src = str(PROJECT_ROOT / "src")
        env["PYTHONPATH"] = os.pathsep.join(p for p in (src, env.get("PYTHONPATH")) if p)
        result = subprocess.run(
            [sys.executable, str(PROJECT_ROOT / "run_gitchanges.py"), "--version"],
            cwd=PROJECT_ROOT,
            env=env,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
        self.assertEqual(result.returncode, 0, result.stderr)
        self.assertIn("gitchanges", result.stdout)

    def test_no_top_level_module_shadows_package(self) -> None:
        self.assertFalse((PROJECT_ROOT / "gitchanges.py").exists())


if __name__ == "__main__":
    unittest.main()
