"""
Command-line interface for issuing, presenting and verifying credentials.
"""

import logging
import sys
from pathlib import Path

import click

from credproof import codec
from credproof.disclosure import (
    CredentialBundle,
    IdentityData,
    IssuerKey,
    ParseError,
    Requirement,
    build_presentation,
    check_presentation,
    evaluate_requirements,
    issue_credential,
)
from credproof.disclosure.requirements import OPERATORS
from credproof.feature_flags import ISSUER_POLICY_ENFORCE, ISSUER_POLICY_WARN


def _read_text(path):
    return Path(path).read_text(encoding="utf-8")


def _write_text(path, text):
    if path:
        Path(path).write_text(text + "\n", encoding="utf-8")
        click.echo(f"Wrote {path}")
    else:
        click.echo(text)


def _load_issuer_key(path):
    try:
        data = codec.loads(_read_text(path))
        return IssuerKey.from_encoded(data["privateKey"])
    except (ParseError, ValueError, KeyError, TypeError) as exc:
        raise click.ClickException(f"invalid key file {path}: {exc}")


@click.group()
@click.version_option(version="0.1.0")
@click.option('--verbose', is_flag=True, help='Enable debug logging')
def main(verbose):
    """
    credproof - selectively disclosable identity credentials.

    Issue signed credentials, reveal chosen attributes with inclusion
    proofs, and verify what a holder reveals.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.option('--out', type=click.Path(dir_okay=False), help='Key file to write (default: stdout)')
def keygen(out):
    """Generate an issuer signing key."""
    key = IssuerKey.generate()
    _write_text(out, codec.dumps({"privateKey": key.encoded, "publicKey": key.public_key}))
    if out:
        click.echo(f"Issuer public key: {key.public_key}")


@main.command()
@click.option('--key', 'key_path', required=True, type=click.Path(exists=True, dir_okay=False), help='Issuer key file from keygen')
@click.option('--age', required=True, type=click.IntRange(min=0), help='Holder age')
@click.option('--residency', required=True, help='Holder residency')
@click.option('--name', required=True, help='Holder full name')
@click.option('--photo', default=None, help='Optional photo reference')
@click.option('--out', type=click.Path(dir_okay=False), help='Bundle file to write (default: stdout)')
def issue(key_path, age, residency, name, photo, out):
    """Issue a signed credential bundle."""
    key = _load_issuer_key(key_path)
    identity = IdentityData(age=age, residency=residency, name=name, photo=photo)
    try:
        record = issue_credential(key, identity.to_attributes())
    except ValueError as exc:
        raise click.ClickException(f"cannot issue credential: {exc}")
    bundle = CredentialBundle(record=record, issuer_pk=key.public_key)
    _write_text(out, bundle.serialize())


@main.command()
@click.option('--bundle', 'bundle_path', required=True, type=click.Path(exists=True, dir_okay=False), help='Credential bundle file')
@click.option('--reveal', multiple=True, required=True, help='Attribute to reveal (repeatable)')
@click.option('--out', type=click.Path(dir_okay=False), help='Presentation file to write (default: stdout)')
def present(bundle_path, reveal, out):
    """Build a presentation revealing the chosen attributes."""
    try:
        bundle = CredentialBundle.deserialize(_read_text(bundle_path))
    except ParseError as exc:
        raise click.ClickException(f"invalid bundle {bundle_path}: {exc}")

    presentation = build_presentation(bundle.record, reveal)
    missing = sorted(set(reveal) - set(presentation.revealed))
    if missing:
        click.echo(click.style(f"Not in credential: {', '.join(missing)}", fg="yellow"), err=True)
    if not presentation.revealed:
        raise click.ClickException("nothing to reveal")
    _write_text(out, presentation.serialize())


@main.command()
@click.option('--presentation', 'presentation_path', required=True, type=click.Path(exists=True, dir_okay=False), help='Presentation file')
@click.option('--issuer-key', default=None, help='Expected issuer public key (base64)')
@click.option(
    '--issuer-policy',
    type=click.Choice([ISSUER_POLICY_ENFORCE, ISSUER_POLICY_WARN]),
    default=None,
    help='Issuer key mismatch handling (default: CREDPROOF_ISSUER_POLICY or enforce)'
)
@click.option(
    '--require',
    'requirements',
    type=(str, click.Choice(OPERATORS), str),
    multiple=True,
    help='Requirement as NAME OP VALUE, e.g. --require age >= 18'
)
def verify(presentation_path, issuer_key, issuer_policy, requirements):
    """
    Verify a presentation and check requirements on revealed values.

    Exits with status 1 when verification or any requirement fails.
    """
    result = check_presentation(
        _read_text(presentation_path), issuer_key, issuer_policy=issuer_policy
    )
    if not result.ok:
        click.echo(click.style(f"✗ Presentation invalid: {result.reason}", fg="red"))
        sys.exit(1)

    click.echo(click.style("✓ Presentation verified", fg="green"))
    click.echo(f"  root: {result.root.hex()}")
    if result.issuer_warning:
        click.echo(click.style(f"  warning: {result.issuer_warning}", fg="yellow"))

    parsed = {name: Requirement.parse(op, value) for name, op, value in requirements}
    outcomes = evaluate_requirements(result.revealed, parsed)
    for name in sorted(outcomes):
        value = result.revealed.get(name)
        shown = value if value is not None else "(not revealed)"
        mark = click.style("✓", fg="green") if outcomes[name] else click.style("✗", fg="red")
        rule = f"  [{parsed[name].op} {parsed[name].target}]" if name in parsed else ""
        click.echo(f"  {mark} {name}: {shown}{rule}")

    if not all(outcomes.values()):
        sys.exit(1)


@main.command()
@click.option('--min-age', type=click.IntRange(min=0), default=18, help='Minimum age for the private check')
@click.option('--required-name', default=None, help='Name the private check must match')
def demo(min_age, required_name):
    """Run an in-process holder/verifier exchange over a loopback pairing."""
    import trio

    from credproof.demo import run_demo

    report = trio.run(run_demo, min_age, required_name)
    click.echo(f"Join code: {report.join_code}")
    status = "verified" if report.disclosure.ok else f"rejected ({report.disclosure.reason})"
    click.echo(f"Disclosure: {status}")
    for name, value in sorted(report.disclosure.revealed.items()):
        click.echo(f"  {name}: {value}")
    click.echo(f"Private check: age_valid={report.output.age_valid}")
    if required_name:
        click.echo(f"Private check: name_valid={report.output.name_valid}")


if __name__ == "__main__":
    main()
