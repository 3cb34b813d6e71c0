"""Общие фабрики и фикстуры для тестов nema."""

from __future__ import annotations

from nema.models.report import AnalysisReport, FailureCluster
from nema.models.run import Collection, Execution, RunFailure, TestRunResult

DEMO_COLLECTION: dict = {
    "info": {"name": "Demo API"},
    "item": [
        {
            "name": "Auth",
            "item": [
                {"id": "req-login", "name": "Login"},
                {"id": "req-logout", "name": "Logout"},
            ],
        },
        {
            "name": "Users",
            "item": [
                {
                    "name": "Admin",
                    "item": [{"id": "req-users", "name": "List users"}],
                },
            ],
        },
        {"id": "req-health", "name": "Health"},
    ],
}


def make_collection(**overrides) -> Collection:
    """Фабрика Collection: Auth/{Login,Logout}, Users/Admin/List users, Health в корне."""
    defaults: dict = dict(DEMO_COLLECTION)
    defaults.update(overrides)
    return Collection.model_validate(defaults)


def make_execution(**overrides) -> Execution:
    """Фабрика Execution с разумными дефолтами (успешный POST /api/v1/auth/login)."""
    defaults: dict = {
        "item": {"id": "req-login", "name": "Login"},
        "request": {"method": "POST", "url": "http://localhost:8080/api/v1/auth/login"},
        "response": {"code": 200, "responseTime": 100},
        "assertions": [{"assertion": "Status is 200"}],
    }
    defaults.update(overrides)
    return Execution.model_validate(defaults)


def make_failure(**overrides) -> RunFailure:
    """Фабрика RunFailure с разумными дефолтами."""
    defaults: dict = {
        "error": {
            "name": "AssertionError",
            "message": "expected 200 but got 500",
            "test": "Status is 200",
        },
        "at": "assertion:0 in test-script",
        "source": {"id": "req-login", "name": "Login", "type": "Item"},
    }
    defaults.update(overrides)
    return RunFailure.model_validate(defaults)


def make_run_result(
    executions: list[dict] | None = None,
    failures: list[dict] | None = None,
    **overrides,
) -> TestRunResult:
    """Фабрика TestRunResult поверх демо-коллекции."""
    defaults: dict = {
        "collection": DEMO_COLLECTION,
        "run": {
            "stats": {
                "requests": {"total": len(executions or [])},
                "assertions": {"total": 0, "failed": len(failures or [])},
            },
            "executions": executions or [],
            "failures": failures or [],
        },
    }
    defaults.update(overrides)
    return TestRunResult.model_validate(defaults)


def make_cluster(**overrides) -> FailureCluster:
    """Фабрика FailureCluster с разумными дефолтами."""
    defaults: dict = {
        "folder": "Auth",
        "assertion": "Status is 200",
        "count": 1,
        "examples": ["expected 200 but got 500"],
        "share": 100.0,
    }
    defaults.update(overrides)
    return FailureCluster.model_validate(defaults)


def make_report(**overrides) -> AnalysisReport:
    """Фабрика AnalysisReport без падений и превышений."""
    defaults: dict = {
        "collection": "Demo API",
        "timestamp": "2026-01-01T00:00:00.000Z",
        "stats": {"failureCount": 0},
    }
    defaults.update(overrides)
    return AnalysisReport.model_validate(defaults)
