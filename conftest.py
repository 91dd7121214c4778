import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def pytest_runtest_setup():
    # Runs for both grade_fee_engine/tests and tests/. Default tables and engines are
    # cached per process; reset them so a test that points config.TABLES_DIR
    # elsewhere does not leak into the next one.
    from grade_fee_engine.fees import engine as fee_engine
    from grade_fee_engine.grading import engine as grading_engine
    from grade_fee_engine.tables import loader

    loader.default_grading_tables.cache_clear()
    loader.default_fee_tables.cache_clear()
    grading_engine.default_engine.cache_clear()
    fee_engine.default_engine.cache_clear()
