"""
tlsbundle CLI

Commands:
- inspect: Load a PEM file or PKCS#12 keystore and show the bundle
- generate: Issue a CA + server certificate and print the PEM buffers
"""

import json
from datetime import datetime
from typing import Optional

import click
from cryptography import x509
from rich import box
from rich.console import Console
from rich.table import Table

from tlsbundle.bundle import CertificateBundle
from tlsbundle.exceptions import TLSBundleError
from tlsbundle.issuer import generate_certificate
from tlsbundle.keys import describe_key
from tlsbundle.loader import from_p12, from_pem
from tlsbundle.options import TLSOptions

console = Console()


def _format_datetime(dt: Optional[datetime]) -> str:
    """Format a datetime for display, handling None."""
    if dt is None:
        return "N/A"
    return dt.strftime("%Y-%m-%d %H:%M:%S")


def _display_name(name: str) -> str:
    """Return an RFC 4514 name for display, or N/A when it is empty."""
    return name or "N/A"


def _describe_certificate(cert: x509.Certificate) -> dict:
    return {
        "subject": cert.subject.rfc4514_string(),
        "issuer": cert.issuer.rfc4514_string(),
        "serial": format(cert.serial_number, "x"),
        "not_before": _format_datetime(cert.not_valid_before_utc),
        "not_after": _format_datetime(cert.not_valid_after_utc),
    }


def _bundle_summary(bundle: CertificateBundle) -> dict:
    return {
        "certificates": [_describe_certificate(c) for c in bundle.parsed_chain()],
        "private_key": describe_key(bundle.private_key),
    }


@click.group()
def main():
    """Issue and inspect TLS server certificates."""


@main.command()
@click.option("--pem", "pem_file", type=click.Path(dir_okay=False), help="PEM file with certificate(s) and key.")
@click.option("--p12", "p12_file", type=click.Path(dir_okay=False), help="PKCS#12 keystore.")
@click.option("--password", default="", help="PKCS#12 keystore password.")
@click.option("--json", "json_flag", is_flag=True, help="Output as JSON.")
def inspect(pem_file: Optional[str], p12_file: Optional[str], password: str, json_flag: bool):
    """Load a certificate bundle and show its chain and key."""
    if not pem_file and not p12_file:
        click.echo("Error: one of --pem or --p12 is required.", err=True)
        raise SystemExit(1)

    try:
        bundle = from_pem(pem_file) if pem_file else from_p12(p12_file, password)
    except (TLSBundleError, OSError) as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1)

    summary = _bundle_summary(bundle)
    if json_flag:
        click.echo(json.dumps(summary, indent=2))
        return

    table = Table(box=box.ROUNDED)
    table.add_column("#", justify="right")
    table.add_column("Subject", style="cyan")
    table.add_column("Issuer")
    table.add_column("Serial", style="dim")
    table.add_column("Not Before")
    table.add_column("Not After")
    for index, cert in enumerate(summary["certificates"]):
        table.add_row(
            str(index),
            _display_name(cert["subject"]),
            _display_name(cert["issuer"]),
            cert["serial"],
            cert["not_before"],
            cert["not_after"],
        )

    console.print(table)
    console.print(f"\n  Private key: {summary['private_key']}\n")


@main.command()
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False), help="YAML options file.")
@click.option("--cn", "common_name", help="Subject common name.")
@click.option("--org", "organization", multiple=True, help="Subject organization (repeatable).")
@click.option("--host", "hosts", multiple=True, help="DNS name or IP for the leaf certificate (repeatable).")
@click.option("--with-ca", is_flag=True, help="Also print the CA certificate.")
def generate(
    config_path: Optional[str],
    common_name: Optional[str],
    organization: tuple[str, ...],
    hosts: tuple[str, ...],
    with_ca: bool,
):
    """Issue a CA and a server certificate and print them as PEM."""
    options = TLSOptions.from_yaml(config_path) if config_path else TLSOptions()
    subject_update: dict = {}
    if common_name:
        subject_update["common_name"] = common_name
    if organization:
        subject_update["organization"] = list(organization)
    if subject_update:
        subject = options.subject.model_copy(update=subject_update)
        options = options.model_copy(update={"subject": subject})
    if hosts:
        options = options.model_copy(update={"hosts": list(hosts)})

    try:
        artifacts = generate_certificate(options)
    except TLSBundleError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1)

    click.echo(artifacts.cert_pem.decode(), nl=False)
    click.echo(artifacts.key_pem.decode(), nl=False)
    if with_ca:
        click.echo(artifacts.ca_cert_pem.decode(), nl=False)


if __name__ == "__main__":
    main()
