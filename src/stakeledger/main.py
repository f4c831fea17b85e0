"""
Main entrypoint for stakeledger.

What it does:
- Loads runtime settings from `config/config.yaml` (path override:
  `STAKELEDGER_CONFIG`) and the environment.
- Starts the Prometheus exporter on `PROMETHEUS_PORT` (default from settings).
- Replays the operation script named by `LEDGER_SCRIPT` against an in-memory
  custody book seeded with the script's `balances`, on a manual clock.
- Logs each step's outcome and writes the final ledger state as parquet to
  `state_dir`.

Key related modules:
- `stakeledger.config.loader.Settings` and `load_settings`
- `stakeledger.ledger.StakingLedger`
- `stakeledger.replay.run_steps`
"""
import json
import logging
import os
import yaml
from typing import Any, Dict, List, Tuple

from stakeledger.clock import ManualClock
from stakeledger.config.loader import Settings, load_settings
from stakeledger.custody.transfer import InMemoryCustody
from stakeledger.ledger import StakingLedger
from stakeledger.metrics.core import start_server_safe
from stakeledger.replay import run_steps


def load_script(path: str) -> Dict[str, Any]:
    with open(path, "r") as f:
        script = yaml.safe_load(f) or {}
    if not isinstance(script.get("steps", []), list):
        raise ValueError(f"{path}: 'steps' must be a list")
    return script


def run(settings: Settings, script: Dict[str, Any]) -> Tuple[StakingLedger, List[Dict[str, Any]]]:
    custody = InMemoryCustody(script.get("balances", {}), custody_account=settings.custody_account)
    clock = ManualClock(int(script.get("start_ts", 1_700_000_000)))
    ledger = StakingLedger(
        custody,
        settings.operator,
        clock=clock,
        params=settings.lock_params(),
        ledger_id=settings.ledger_id,
    )
    results = run_steps(ledger, clock, script.get("steps", []))
    return ledger, results


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    settings = load_settings(os.getenv("STAKELEDGER_CONFIG", "config/config.yaml"))
    logging.info(f"Ledger: {settings.ledger_id}, operator: {settings.operator}")

    prom_port = int(os.getenv("PROMETHEUS_PORT", str(settings.metrics_port)))
    start_server_safe(prom_port)

    script_path = os.getenv("LEDGER_SCRIPT", "config/scripts/demo.yaml")
    script = load_script(script_path)
    logging.info(f"Replaying {len(script.get('steps', []))} steps from {script_path}")
    ledger, results = run(settings, script)
    for res in results:
        logging.info(json.dumps(res, separators=(",", ":"), default=str))

    ledger.write_parquet(settings.state_dir)
    logging.info(
        f"State written to {settings.state_dir}: {len(ledger.accounts())} positions, "
        f"staked={ledger.total_staked()}, pool={ledger.available_rewards}"
    )


if __name__ == "__main__":
    main()
