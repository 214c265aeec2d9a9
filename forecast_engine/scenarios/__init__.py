from forecast_engine.scenarios.diff import (
    ScenarioDiffEngine,
    metric_for_rule,
    rules_for_scenario,
)

__all__ = ["ScenarioDiffEngine", "metric_for_rule", "rules_for_scenario"]
