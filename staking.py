#!/usr/bin/env python3
import time
import re

import click
import eth_utils
import flask
import config

from eth_typing       import ChecksumAddress

from contracts.staking_pool import StakingPoolReader
from reconcile              import Reconciler, date_now_str
from registry               import load_registry
from store                  import StakingStore, StoreError, NotFoundError

class App(flask.Flask):
    def __init__(self, backend=None, reader=None, store=None):
        super().__init__(__name__)
        backend = backend or config.backend
        self.logger.setLevel(backend.log_level)

        # Refuses to start on a bad registry (e.g. a token without declared decimals)
        self.registry   = load_registry(backend.tokens)
        self.store      = store  or StakingStore(backend.sqlite_db)
        self.reader     = reader or StakingPoolReader(backend.provider_url, backend.request_timeout)
        self.reconciler = Reconciler(self.registry,
                                     self.reader,
                                     self.store,
                                     logger=self.logger,
                                     slow_cycle_seconds=backend.slow_cycle_seconds)

        self.logger.info("{} Staking backend started with {} tokens: {}".format(
                         date_now_str(),
                         len(self.registry),
                         ", ".join(entry.token_key for entry in self.registry)))


eth_regex = "0x[0-9a-fA-F]{40}"

def eth_format(addr: str) -> ChecksumAddress:
    return eth_utils.to_checksum_address(addr)


def json_record(record: dict) -> dict:
    """
    Renders a staking record for a JSON response.

    - "tvl" is a plain decimal string (e.g. "0.000000000001", never "1E-12") so that no precision
      is lost in transit.  Earlier versions of this API sent it as a number.
    - "tvl_value" is the same amount as a JSON number, for clients that do arithmetic on it and
      can live with float rounding.
    """
    return {**record, "tvl": format(record["tvl"], "f"), "tvl_value": float(record["tvl"])}


def register_routes(app: App):
    @app.after_request
    def allow_any_origin(response: flask.Response):
        response.headers["Access-Control-Allow-Origin"] = "*"
        return response

    @app.route("/info")
    def network_info():
        """
        Do-nothing endpoint listing the configured tokens; useful as a health check.
        """
        return flask.jsonify({"tokens": [entry.token_key for entry in app.registry], "t": time.time()})

    @app.route("/staking")
    def get_staking_data():
        try:
            return flask.jsonify([json_record(r) for r in app.store.get_all()])
        except StoreError as e:
            app.logger.error(f"Exception: {e}")
            return flask.jsonify({"error": "Failed to fetch staking data"}), 500

    @app.route("/staking/<address>")
    def get_staking_by_address(address: str):
        if not re.fullmatch(eth_regex, address):
            return flask.jsonify({"error": f"Invalid token address: {address}"}), 400
        try:
            return flask.jsonify(json_record(app.store.get_by_key(eth_format(address))))
        except NotFoundError:
            return flask.jsonify({"error": "Staking data not found"}), 404
        except StoreError as e:
            app.logger.error(f"Exception: {e}")
            return flask.jsonify({"error": "Failed to fetch staking data"}), 500

    @app.route("/staking/update", methods=["POST"])
    def update_staking():
        """
        Runs one reconciliation cycle before responding.  Failures of individual tokens do not fail
        the request; they are reported per token under "results".
        """
        report = app.reconciler.reconcile_all()
        failed = len(report.failed)
        if failed == 0:
            message = "Staking data updated successfully"
        else:
            message = f"Staking data updated with {failed} of {len(report.results)} tokens failing"
        return flask.jsonify({"message": message, "results": report.as_dict(), "t": time.time()})

    @app.cli.command("update-staking")
    def update_staking_command():
        """Run one staking data reconciliation cycle (for cron style scheduling)."""
        report = app.reconciler.reconcile_all()
        for result in report.results:
            line = f"{result.token_key:<10} {result.status}"
            click.echo(f"{line}: {result.error}" if result.error else line)
        if report.failed:
            raise SystemExit(1)


app = App()
register_routes(app)
