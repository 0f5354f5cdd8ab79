"""
Root pytest configuration for Template Notifications.

Sets up Python path and test environment variables for all test directories.
"""

import os
import sys
from pathlib import Path

# Set test environment variables before anything else imports settings
os.environ.setdefault("TEMPLATE_NOTIFICATIONS_ENV", "development")
os.environ.setdefault("TEMPLATE_NOTIFICATIONS_LOG_LEVEL", "DEBUG")
os.environ.setdefault("CONTENT_STORE_PROVIDER", "memory")
os.environ.setdefault("DELIVERY_PROVIDER", "memory")

# Project root
project_root = Path(__file__).parent

# Add src directory to path for imports
src_path = project_root / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))
