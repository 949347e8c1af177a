import os
import sys
from pathlib import Path

# Keep tests deterministic and local-only.
os.environ["PUPPET_MASTER_SKIP_DOTENV"] = "1"
os.environ.pop("PUPPET_MASTER_API_TOKEN", None)
os.environ.pop("PUPPET_MASTER_ENDPOINT", None)
os.environ.pop("PUPPET_MASTER_TEAM", None)
os.environ.pop("PUPPET_MASTER_DEBUG", None)

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))
