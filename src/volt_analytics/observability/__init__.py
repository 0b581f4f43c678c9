from .logger import get_run_id, new_run_id, set_run_id, setup_logging

__all__ = ["get_run_id", "new_run_id", "set_run_id", "setup_logging"]
