#!/usr/bin/env python3
"""
Case Desk — Operations Tool

Day-to-day operator commands against the configured store.
Usage: python manage.py <command> [options]
"""

import logging
import os
import subprocess
import sys
from datetime import datetime
from typing import List

from casedesk.core.config import settings
from casedesk.core.errors import CaseDeskError
from casedesk.repositories.profiles import ProfileRepository
from casedesk.repositories.users import UserRepository
from casedesk.storage import build_backend
from casedesk.workflow.locking import LockManager

BACKEND_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "backend")


# ═══════════════════════════════════════════════════════════
#  Logging Setup
# ═══════════════════════════════════════════════════════════

class ColorFormatter(logging.Formatter):
    """Console formatter with ANSI colors keyed on `[MARKER]` prefixes."""

    COLORS = {
        "INFO": "\033[96m",
        "SUCCESS": "\033[92m",
        "WARNING": "\033[93m",
        "ERROR": "\033[91m",
        "HEADER": "\033[95m",
        "BOLD": "\033[1m",
        "RESET": "\033[0m",
    }

    MARKERS = {
        "[SUCCESS]": ("✓", "SUCCESS"),
        "[WARNING]": ("⚠", "WARNING"),
        "[ERROR]": ("✗", "ERROR"),
        "[STEP]": ("▶", "INFO"),
    }

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors and sys.stdout.isatty()

    def format(self, record: logging.LogRecord) -> str:
        msg = str(record.msg)
        symbol, color = "→", record.levelname
        for marker, (marker_symbol, marker_color) in self.MARKERS.items():
            if marker in msg:
                msg = msg.replace(marker, "").lstrip()
                symbol, color = marker_symbol, marker_color
                break

        if msg.startswith("==="):
            color = "HEADER"
        elif not msg.startswith(" "):
            msg = f"{symbol} {msg}"

        if self.use_colors and color in self.COLORS:
            msg = f"{self.COLORS[color]}{msg}{self.COLORS['RESET']}"
        record.msg = msg
        return super().format(record)


_log_dir = "logs"
os.makedirs(_log_dir, exist_ok=True)
_file_handler = logging.FileHandler(
    os.path.join(_log_dir, f"manage-{datetime.now():%Y%m%d}.log"), encoding="utf-8"
)
_file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
_console_handler = logging.StreamHandler()
_console_handler.setFormatter(ColorFormatter())

logging.basicConfig(level=logging.INFO, handlers=[_file_handler, _console_handler])
logger = logging.getLogger("manage")


# ═══════════════════════════════════════════════════════════
#  Desk Manager
# ═══════════════════════════════════════════════════════════

class DeskManager:
    """Operator commands against the store named by the current settings."""

    def __init__(self) -> None:
        self.backend = build_backend(settings)
        self.users = UserRepository(self.backend, settings)
        self.profiles = ProfileRepository(self.backend, settings)
        self.locks = LockManager(self.profiles)

    def _run(self, cmd: List[str]) -> None:
        logger.info(f"[STEP] Running: {' '.join(cmd)}")
        subprocess.run(cmd, check=True, cwd=BACKEND_DIR)

    # ─── Server ───────────────────────────────────────────
    def serve(self, reload: bool = False) -> None:
        """Run the API with uvicorn."""
        logger.info(f"\n=== Serving Case Desk ({settings.APP_ENV}) ===")
        cmd = [sys.executable, "-m", "uvicorn", "casedesk.main:app", "--host", "0.0.0.0", "--port", "8000"]
        if reload:
            cmd.append("--reload")
        self._run(cmd)

    # ─── Accounts ─────────────────────────────────────────
    def seed(self) -> None:
        """Seed the admin and development staff accounts."""
        logger.info("\n=== Seeding Accounts ===")
        self._run([sys.executable, "-m", "scripts.seed_users"])
        logger.info("[SUCCESS] Seed data inserted!")

    def list_users(self) -> None:
        logger.info("\n=== Accounts ===")
        for user in self.users.list_users():
            approver = " approver" if user.can_approve else ""
            logger.info(f"  {user.username:<20} {user.role:<6} {user.area or '-':<20}{approver}")

    # ─── Locks ────────────────────────────────────────────
    def list_locks(self) -> None:
        """Profiles currently held open, with their holder."""
        logger.info("\n=== Held Locks ===")
        held = [p for p in self.profiles.list_profiles() if p.is_locked]
        if not held:
            logger.info("[SUCCESS] No profile is locked")
            return
        for profile in held:
            logger.info(f"  {profile.id}  {profile.phone_number:<14} held by {profile.viewed_by_name}")

    def unlock(self, profile_id: str) -> None:
        """Clear a lock left behind by a client that never released it."""
        logger.info(f"\n=== Unlocking {profile_id} ===")
        profile = self.profiles.get_profile(profile_id)
        if not profile.is_locked:
            logger.warning("[WARNING] Profile is not locked")
            return
        holder = profile.viewed_by_name
        self.locks.force_release(profile)
        logger.info(f"[SUCCESS] Released lock held by {holder}")


# ═══════════════════════════════════════════════════════════
#  CLI
# ═══════════════════════════════════════════════════════════

USAGE = """
Case Desk — Operations
==================================================

Usage: python manage.py <command> [options]

Commands:
    serve             Run the API (--reload for development)
    seed              Seed admin and development staff accounts
    users             List accounts
    locks             List profiles that are currently locked
    unlock <id>       Force-release the lock on one profile

Examples:
    python manage.py serve --reload
    python manage.py locks
    python manage.py unlock 3f6c1a9e-...
"""


def main() -> None:
    if len(sys.argv) < 2 or sys.argv[1] in ("-h", "--help"):
        print(USAGE)
        sys.exit(0)

    command = sys.argv[1]
    opts = sys.argv[2:]

    try:
        mgr = DeskManager()
        if command == "serve":
            mgr.serve(reload="--reload" in opts)
        elif command == "seed":
            mgr.seed()
        elif command == "users":
            mgr.list_users()
        elif command == "locks":
            mgr.list_locks()
        elif command == "unlock":
            if not opts:
                logger.error("[ERROR] unlock needs a profile id")
                sys.exit(1)
            mgr.unlock(opts[0])
        else:
            logger.error(f"Unknown command: {command}")
            print(USAGE)
            sys.exit(1)
    except (CaseDeskError, subprocess.CalledProcessError) as exc:
        logger.error(f"[ERROR] Operation failed: {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
