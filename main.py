"""Command line entry point for the self-similar traffic simulator.

Examples::

    python main.py pareto --time 1000 --sources 50 --seed 42
    python main.py fgn --time 500 --sources 20 --hurst 0.85
    python main.py generate --hurst 0.8 --sigma 1.0 --samples 1024 --sources 10
    python main.py pareto --config config/pareto.yaml --verbose
"""

import argparse
import logging
import sys

from trafficsim.config import load_fgn_parameters, load_simulation_parameters
from trafficsim.output import MIN_FGN_HURST_SAMPLES, FileOutputManager, NullOutputSink
from trafficsim.parameters import (
    ConfigurationError,
    FGNGenerationParameters,
    SimulationParameters,
    TrafficModel,
)
from trafficsim.simulation import TrafficSimulation, run_fgn_generation

logger = logging.getLogger("trafficsim")


def build_parser():
    parser = argparse.ArgumentParser(description="Self-similar ON/OFF network traffic simulator")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--output-root", default="output", help="Parent directory of run folders")
    parser.add_argument("--no-files", action="store_true", help="Do not write a run directory")
    sub = parser.add_subparsers(dest="command", required=True)

    pareto = sub.add_parser("pareto", help="Run a Pareto ON/OFF simulation")
    _add_simulation_args(pareto)
    pareto.add_argument("--on-shape", type=float, default=1.5)
    pareto.add_argument("--on-scale", type=float, default=1.0)
    pareto.add_argument("--off-shape", type=float, default=1.2)
    pareto.add_argument("--off-scale", type=float, default=2.0)
    pareto.add_argument("--variation", type=float, default=0.15,
                        help="Relative per-source jitter of the Pareto parameters")

    fgn = sub.add_parser("fgn", help="Run a simulation with FGN-thresholded sources")
    _add_simulation_args(fgn)
    fgn.add_argument("--hurst", type=float, default=0.8)
    fgn.add_argument("--sigma", type=float, default=1.0)
    fgn.add_argument("--threshold", type=float, default=0.0)
    fgn.add_argument("--fgn-seed", type=int, default=42)

    generate = sub.add_parser("generate", help="Generate a standalone FGN series")
    generate.add_argument("--config", help="YAML file with FGN generation settings")
    generate.add_argument("--hurst", type=float, default=0.8)
    generate.add_argument("--sigma", type=float, default=1.0)
    generate.add_argument("--samples", type=int, default=1024)
    generate.add_argument("--interval", type=float, default=1.0)
    generate.add_argument("--threshold", type=float, default=0.0)
    generate.add_argument("--seed", type=int, default=42)
    generate.add_argument("--sources", type=int, default=None,
                          help="Also run an FGN simulation with this many sources")
    return parser


def _add_simulation_args(parser):
    parser.add_argument("--config", help="YAML file with simulation parameters")
    parser.add_argument("--time", type=float, default=1000.0, help="Simulation horizon (s)")
    parser.add_argument("--sources", type=int, default=50)
    parser.add_argument("--interval", type=float, default=1.0, help="Sampling interval (s)")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--service-rate", type=float, default=None,
                        help="Queue service rate in packets/s (default: sources / interval)")


def simulation_parameters(args) -> SimulationParameters:
    if args.config:
        params = load_simulation_parameters(args.config)
        if args.command == "fgn":
            params.traffic_model = TrafficModel.FGN_THRESHOLD
            params.validate()
        return params

    params = SimulationParameters(
        total_simulation_time=args.time,
        number_of_sources=args.sources,
        sampling_interval=args.interval,
        random_seed=args.seed,
        service_rate=args.service_rate,
    )
    if args.command == "fgn":
        params.traffic_model = TrafficModel.FGN_THRESHOLD
        params.hurst = args.hurst
        params.fgn_sigma = args.sigma
        params.fgn_threshold = args.threshold
        params.fgn_seed = args.fgn_seed
    else:
        params.on_shape = args.on_shape
        params.on_scale = args.on_scale
        params.off_shape = args.off_shape
        params.off_scale = args.off_scale
        params.parameter_variation = args.variation
    params.validate()
    return params


def sink_factory(args, metadata):
    if args.no_files:
        return NullOutputSink
    return lambda: FileOutputManager(metadata, output_root=args.output_root)


def run_simulation(args) -> dict:
    params = simulation_parameters(args)
    sim = TrafficSimulation(params, sink_factory=sink_factory(args, params.to_metadata()))
    report = sim.run()
    TrafficSimulation.print_report(report)
    return report


def run_generation(args):
    if args.config:
        gen_params, sources = load_fgn_parameters(args.config)
        if args.sources is not None:
            sources = args.sources
    else:
        gen_params = FGNGenerationParameters(
            hurst=args.hurst,
            sigma=args.sigma,
            sample_count=args.samples,
            sampling_interval=args.interval,
            threshold=args.threshold,
            seed=args.seed,
        )
        sources = args.sources
    gen_params.validate()
    if gen_params.sample_count < MIN_FGN_HURST_SAMPLES:
        logger.warning(
            "Hurst estimation requires at least %d samples; only %d requested",
            MIN_FGN_HURST_SAMPLES,
            gen_params.sample_count,
        )

    with sink_factory(args, gen_params.to_metadata())() as sink:
        series = run_fgn_generation(gen_params, sink)

    if sources is not None:
        if sources <= 0:
            raise ConfigurationError("--sources must be positive")
        params = gen_params.to_simulation_parameters(sources)
        metadata = dict(params.to_metadata(), workflow="fgn_generation")
        report = TrafficSimulation(params, sink_factory=sink_factory(args, metadata)).run()
        TrafficSimulation.print_report(report)
    return series


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        if args.command == "generate":
            run_generation(args)
        else:
            run_simulation(args)
    except (ConfigurationError, OSError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
