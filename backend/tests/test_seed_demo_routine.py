import importlib.util
from pathlib import Path

from sqlalchemy import func, select

from routinedesk.models.routine_slot import RoutineSlot
from routinedesk.services.routine_service import reconcile_spans

SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "seed_demo_routine.py"


def _load_seed_module():
    spec = importlib.util.spec_from_file_location("seed_demo_routine", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_seed_builds_a_consistent_routine_and_is_repeatable(db_session_factory):
    seed_module = _load_seed_module()

    with db_session_factory() as db:
        first = seed_module.seed(db, academic_year_id="ay-demo")
        assert first == {"created": 7, "skipped": 0}
        total = db.execute(select(func.count()).select_from(RoutineSlot)).scalar_one()
        assert total == 1 + 1 + 3 + 3 + 1 + 2 + 2
        assert reconcile_spans(db, "ay-demo") == []

        second = seed_module.seed(db, academic_year_id="ay-demo")
        assert second == {"created": 0, "skipped": 7}
