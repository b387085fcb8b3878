"""Assemble a FlyWire export from the command line.

    python -m flygraph ~/data/flywire/783 --anomalies anomalies.csv
"""
import argparse
import sys

from flygraph.errors import FlyGraphError
from flygraph.ingest import IngestConfig, ingest_export
from flygraph.utils import get_logger

LOG = get_logger("main")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="flygraph",
        description="Read a FlyWire CSV export into one connectome graph.")

    parser.add_argument("export_dir", nargs="?", default=None,
                        help="Directory with the <dataset>.csv.gz files "
                             "(default: $FLYGRAPH_EXPORT_DIR).")

    parser.add_argument("-c", "--config",
                        required=False, default=None,
                        help="YAML configuration; command-line options override it.")

    parser.add_argument("--no-threshold", dest="no_threshold",
                        action="store_true",
                        help="Read connections_no_threshold instead of connections.")

    parser.add_argument("--skip-optional", dest="skip_optional",
                        action="store_true",
                        help="Do not read optional tables such as neuropil_synapse_table.")

    parser.add_argument("-d", "--dataset", dest="datasets", action="append",
                        required=False, default=None,
                        help="Read only this table (repeatable).")

    parser.add_argument("-a", "--anomalies",
                        required=False, default=None,
                        help="Write the anomaly table to this CSV path.")
    return parser


def config_from_args(args):
    settings = {}
    if args.config:
        settings = vars(IngestConfig.from_yaml(args.config)).copy()
        settings.pop("policy", None)
    if args.export_dir:
        settings["export_dir"] = args.export_dir
    if args.no_threshold:
        settings["connections_dataset"] = "connections_no_threshold"
    if args.skip_optional:
        settings["include_optional"] = False
    if args.datasets:
        settings["datasets"] = args.datasets
    return IngestConfig(**settings)


def main(argv=None):
    args = build_parser().parse_args(argv)
    try:
        config = config_from_args(args)
        store, report = ingest_export(config)
    except (FlyGraphError, FileNotFoundError) as error:
        LOG.error("%s", error)
        return 1

    LOG.info("Assembled %r\n%s", store, store.summary().to_string())
    if args.anomalies:
        report.anomaly_frame().to_csv(args.anomalies, index=False)
        LOG.info("Wrote %d anomalies to %s", report.n_anomalies, args.anomalies)
    return 0


if __name__ == "__main__":
    sys.exit(main())
