"""
data_manager.py - Training job and model registry

Training runs and the model files they produce are recorded in two JSON
files inside a data directory. Every read and write goes through a lock
file, and writes replace the target atomically.
"""

import datetime
import json
import os
from typing import Any, Dict, List, Optional, Union

from filelock import FileLock

from c4rl.debug import debug

BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))
DATA_DIR = os.path.join(BASE_DIR, 'data')
JOBS_FILE = 'jobs.json'
MODELS_FILE = 'models.json'


def _path(data_dir: Optional[str], filename: str) -> str:
    return os.path.join(data_dir or DATA_DIR, filename)


def _now() -> str:
    return datetime.datetime.now().isoformat(timespec='seconds')


def safe_read_json(file_path: str) -> List[Dict]:
    """
    Read a JSON list under a file lock.

    Returns:
        The parsed list, or [] if the file is missing or unreadable
    """
    if not os.path.exists(file_path):
        return []

    with FileLock(f"{file_path}.lock"):
        try:
            with open(file_path, 'r') as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            debug.error(f"Error reading {file_path}: {e}", "data")
            return []


def safe_write_json(file_path: str, data: Any) -> bool:
    """
    Write data as JSON under a file lock, replacing the file atomically.

    Returns:
        True if successful, False otherwise
    """
    try:
        os.makedirs(os.path.dirname(file_path) or '.', exist_ok=True)
        with FileLock(f"{file_path}.lock"):
            temp_file = f"{file_path}.tmp"
            with open(temp_file, 'w') as f:
                json.dump(data, f, indent=2)
            os.replace(temp_file, file_path)
        return True
    except (OSError, TypeError) as e:
        debug.error(f"Error writing to {file_path}: {e}", "data")
        return False


# --- jobs ---

def create_job(parameters: Dict[str, Any], data_dir: Optional[str] = None) -> int:
    """
    Record a new training run.

    Returns:
        The new job ID, or -1 if the registry could not be written
    """
    jobs_file = _path(data_dir, JOBS_FILE)
    jobs = safe_read_json(jobs_file)
    job_id = max((job['job_id'] for job in jobs), default=0) + 1

    jobs.append({
        "job_id": job_id,
        "start_time": _now(),
        "end_time": None,
        "total_episodes": parameters.get('episodes', 0),
        "episodes_completed": 0,
        "status": "running",
        "parameters": parameters,
        "summary": None,
    })

    if not safe_write_json(jobs_file, jobs):
        debug.error("Failed to create job", "data")
        return -1

    debug.info(f"Created job {job_id}", "data")
    return job_id


def _update_job(job_id: int, data_dir: Optional[str], **fields) -> bool:
    jobs_file = _path(data_dir, JOBS_FILE)
    jobs = safe_read_json(jobs_file)

    for job in jobs:
        if job['job_id'] == job_id:
            job.update(fields)
            return safe_write_json(jobs_file, jobs)

    debug.error(f"Job {job_id} not found", "data")
    return False


def update_job_progress(job_id: int, episodes_completed: int,
                        data_dir: Optional[str] = None) -> bool:
    return _update_job(job_id, data_dir, episodes_completed=episodes_completed)


def complete_job(job_id: int, summary: Optional[Dict[str, Any]] = None,
                 data_dir: Optional[str] = None) -> bool:
    if not _update_job(job_id, data_dir, end_time=_now(), status="completed", summary=summary):
        return False

    debug.info(f"Marked job {job_id} as completed", "data")
    return True


def get_job_data(job_id: Optional[int] = None,
                 data_dir: Optional[str] = None) -> Union[Dict, List[Dict]]:
    """One job by ID ({} if unknown), or every job when job_id is None."""
    jobs = safe_read_json(_path(data_dir, JOBS_FILE))
    if job_id is None:
        return jobs

    for job in jobs:
        if job['job_id'] == job_id:
            return job

    debug.warning(f"Job {job_id} not found", "data")
    return {}


# --- models ---

def register_model(job_id: int, episode: int, path: str, is_final: bool = False,
                   evaluation: Optional[Dict[str, Any]] = None,
                   data_dir: Optional[str] = None) -> bool:
    models_file = _path(data_dir, MODELS_FILE)
    models = safe_read_json(models_file)

    models.append({
        "model_id": len(models) + 1,
        "job_id": job_id,
        "episode": episode,
        "path": path,
        "timestamp": _now(),
        "is_final": is_final,
        "evaluation": evaluation,
    })

    if not safe_write_json(models_file, models):
        debug.error(f"Failed to register model for job {job_id}", "data")
        return False

    debug.info(f"Registered model for job {job_id}, episode {episode}", "data")
    return True


def get_registered_models(job_id: Optional[int] = None,
                          data_dir: Optional[str] = None) -> List[Dict]:
    models = safe_read_json(_path(data_dir, MODELS_FILE))
    if job_id is None:
        return models
    return [model for model in models if model['job_id'] == job_id]
