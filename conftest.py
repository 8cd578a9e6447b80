import sys
from pathlib import Path

# allow running the suite from a plain checkout without `pip install -e .`
_SRC = Path(__file__).parent / "src"
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))


def pytest_report_header(config):
    """Show which climgrid copy the tests import."""
    try:
        import climgrid
    except ImportError as e:
        return f"climgrid: not importable ({e})"
    return f"climgrid {climgrid.__version__} from {Path(climgrid.__file__).parent}"
