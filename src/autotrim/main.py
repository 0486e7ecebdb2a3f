#!/usr/bin/env python3
"""
===============================================================================
GIMBAL AUTO-TRIM - COMMAND LINE ENTRY POINT
===============================================================================
Runs a scenario through the fixed-step host loop and reports how well the
auto-trim gimbals keep the thrust line on the center of mass.

USAGE:
    autotrim --config config/example_vehicle.yaml
    autotrim --config scenario.yaml --steps 500 --output out/ --plot
    autotrim --config scenario.yaml --log-level DEBUG

OUTPUTS (with --output DIR):
    DIR/telemetry.csv         - Per-step telemetry
    DIR/trim_history.png      - Trim and off-axis error time histories (--plot)
    DIR/deflection_hist.png   - Deflection distribution (--plot)
===============================================================================
"""

import argparse
import logging
import sys
from pathlib import Path

from autotrim.control.auto_trim import AutoTrimGimbal
from autotrim.simulation.scenario import build_schedule, build_vehicle, load_config
from autotrim.simulation.sim_engine import TrimSimulation

logger = logging.getLogger('autotrim.main')


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run a gimbal auto-trim scenario.",
    )
    parser.add_argument('--config', required=True,
                        help='Scenario YAML file')
    parser.add_argument('--steps', type=int, default=None,
                        help='Number of physics steps (overrides config)')
    parser.add_argument('--output', default=None,
                        help='Directory for telemetry CSV and plots')
    parser.add_argument('--plot', action='store_true',
                        help='Write telemetry plots (requires --output)')
    parser.add_argument('--log-level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    if args.plot and args.output is None:
        logger.error("--plot needs --output")
        return 2

    config = load_config(args.config)
    vehicle = build_vehicle(config)
    sim = TrimSimulation(vehicle, config, schedule=build_schedule(config))
    df = sim.run(args.steps)

    summary = sim.summary()
    logger.info("Steps: %d, final time %.2f s, aggregations %d",
                summary['steps'], summary.get('final_time', 0.0),
                summary.get('aggregations', 0))
    logger.info("Mean off-axis error: untrimmed %.3f deg, trimmed %.3f deg",
                summary.get('mean_untrimmed_error_deg', float('nan')),
                summary.get('mean_residual_error_deg', float('nan')))

    if args.output is not None:
        out_dir = Path(args.output)
        out_dir.mkdir(parents=True, exist_ok=True)
        csv_path = out_dir / 'telemetry.csv'
        df.to_csv(csv_path, index=False)
        logger.info("Telemetry written to %s", csv_path)

        if args.plot:
            from autotrim.visualization.trim_plots import (
                plot_deflection_histogram,
                plot_trim_history,
            )
            limits = {
                p.name: p.gimbal.trim_limit
                for p in vehicle.parts if isinstance(p.gimbal, AutoTrimGimbal)
            }
            plot_trim_history(df, str(out_dir / 'trim_history.png'), limits)
            plot_deflection_histogram(df, str(out_dir / 'deflection_hist.png'))
            logger.info("Plots saved to %s", out_dir)

    return 0


if __name__ == '__main__':
    sys.exit(main())
