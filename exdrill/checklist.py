"""Checking every exercise at once and recording the results as JSON."""
from __future__ import annotations

import json
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Iterable

from .exercise import Exercise
from .run import RunFailed, run

DEFAULT_RESULT_PATH = ".github/result/check_result.json"


@dataclass
class ExerciseResult:
    """Whether one exercise passed."""

    name: str
    result: bool


@dataclass
class ExerciseStatistics:
    """Totals over a whole check."""

    total_exercations: int
    total_succeeds: int = 0
    total_failures: int = 0
    total_time: int = 0


@dataclass
class ExerciseCheckList:
    """The results of checking all exercises."""

    exercises: list[ExerciseResult] = field(default_factory=list)
    user_name: str | None = None
    statistics: ExerciseStatistics = field(
        default_factory=lambda: ExerciseStatistics(total_exercations=0)
    )

    def record(self, name: str, result: bool) -> None:
        """Add the outcome of one exercise and update the totals."""
        self.exercises.append(ExerciseResult(name=name, result=result))
        if result:
            self.statistics.total_succeeds += 1
        else:
            self.statistics.total_failures += 1

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)


def _now() -> int:
    return int(time.time())


def check_all(
    exercises: Iterable[Exercise],
    verbose: bool = True,
    output_path: str | os.PathLike = DEFAULT_RESULT_PATH,
) -> ExerciseCheckList:
    """Run every exercise concurrently and write the results to output_path.

    Test output is always shown, whatever verbose says.
    """
    exercises = list(exercises)
    started = _now()
    total = len(exercises)
    checklist = ExerciseCheckList(statistics=ExerciseStatistics(total_exercations=total))
    lock = threading.Lock()

    def check(exercise: Exercise, task_started: int) -> None:
        try:
            run(exercise, True)
            passed = True
        except RunFailed:
            passed = False
        with lock:
            checklist.record(exercise.name, passed)
            print(f"{exercise.name}{'执行成功' if passed else '执行失败'}")
            print(f"总的题目数: {total}")
            print(f"当前做正确的题目数: {checklist.statistics.total_succeeds}")
            print(f"当前修改试卷耗时: {_now() - task_started} s")

    with ThreadPoolExecutor() as pool:
        futures = [pool.submit(check, exercise, _now()) for exercise in exercises]
        for future in futures:
            future.result()

    total_time = _now() - started
    print(
        "===============================试卷批改完成,总耗时: "
        f"{total_time} s; =================================="
    )
    checklist.statistics.total_time = total_time
    Path(output_path).write_text(checklist.to_json(), encoding="utf-8")
    return checklist