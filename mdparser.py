#!/usr/bin/env python
"""
SAML metadata filters: read a metadata document (a file or stdin), check it,
and pass it down the pipeline only when it is usable.
"""

import io
import os
import sys
import logging
import argparse
import traceback
from collections import namedtuple
from enum import IntEnum
from lxml import etree

import mdutils
import mdhistory
from mdmodel import AttributeModel
from mdtime import parse_duration, now_canonical, iso2datetime, canonical, InvalidFormat
from mdvalidity import (evaluate, Validity, Timestamps, require_timestamps, require_creation_instant,
                        DEFAULT_MAX_VALIDITY_INTERVAL)
from mdwarning import evaluate_warning, WarningKind, DEFAULT_EXPIRATION_WARNING_INTERVAL

log = logging.getLogger('mdparser')

LOGLEVELS = {'CRITICAL': 50, 'ERROR': 40, 'WARNING': 30, 'INFO': 20, 'DEBUG': 10}
# LOG_LEVEL=0..5 as used by the cron scripts
NUMERIC_LOGLEVELS = {0: 50, 1: 40, 2: 30, 3: 20, 4: 10, 5: 10}

F_SPEC = '%-25s: %s\n'
F_SPEC_INDENTED = ' %-24s: %s\n'


class ExitStatus(IntEnum):
  OK = 0
  WARNING = 1
  USAGE = 2
  FAILURE = 3
  INVALID = 4
  FUTURE = 5
  OVERLAP = 6


class NotMetadata(Exception):
  pass


FilterConfig = namedtuple('FilterConfig', ['command', 'md_file', 'log_level', 'log_file',
                                           'current_time', 'expiration_warning_len',
                                           'freshness_len', 'max_validity_len',
                                           'timestamp_log', 'num_objects', 'quiet',
                                           'out_file', 'security', 'role', 'target_dir'])


def status_for_validity(verdict):
  return {
    Validity.VALID: ExitStatus.OK,
    Validity.EXPIRED: ExitStatus.INVALID,
    Validity.CREATED_IN_FUTURE: ExitStatus.FUTURE,
  }[verdict.status]


def status_for_warning(verdict):
  if verdict.is_error:
    return ExitStatus.FAILURE
  if verdict.kind is WarningKind.SUBINTERVALS_OVERLAP:
    return ExitStatus.OVERLAP
  if verdict.is_warning:
    return ExitStatus.WARNING
  return ExitStatus.OK


def status_for_timestamps(verdict):
  if verdict.ok:
    return ExitStatus.OK
  if verdict.kind in (Timestamps.TOO_FAR_IN_FUTURE, Timestamps.CREATED_IN_FUTURE):
    return ExitStatus.FUTURE
  return ExitStatus.INVALID


def log_level(args, environ):
  if args.debug:
    return logging.DEBUG
  if args.warn:
    return logging.WARNING
  level = environ.get('LOG_LEVEL')
  if not level:
    return logging.INFO
  if level.isdigit() and int(level) in NUMERIC_LOGLEVELS:
    return NUMERIC_LOGLEVELS[int(level)]
  if level.upper() in LOGLEVELS:
    return LOGLEVELS[level.upper()]
  raise InvalidFormat("unrecognized LOG_LEVEL: %s" % level)


def configure(args, environ=os.environ):
  """
  Build the FilterConfig for one run. Durations and dateTimes are parsed
  here, before any document is read.
  """
  current_time = getattr(args, 'current_time', None)
  if current_time:
    current_time = canonical(iso2datetime(current_time))

  freshness_len = getattr(args, 'freshness', None)
  if freshness_len is not None:
    freshness_len = parse_duration(freshness_len)

  num_objects = getattr(args, 'num_objects', mdhistory.DEFAULT_NUM_OBJECTS)
  if num_objects < 1:
    raise InvalidFormat("number of objects must be a positive integer: %s" % num_objects)

  timestamp_log = getattr(args, 'timestamp_log', None)
  if args.command == 'require-timestamps' and timestamp_log and not os.path.isfile(timestamp_log):
    raise InvalidFormat("file does not exist: %s" % timestamp_log)

  target_dir = getattr(args, 'target_dir', None)
  if target_dir is not None and not os.path.isdir(target_dir):
    raise InvalidFormat("directory does not exist: %s" % target_dir)

  return FilterConfig(command=args.command,
                      md_file=getattr(args, 'md_file', None),
                      log_level=log_level(args, environ),
                      log_file=args.log_file or environ.get('LOG_FILE') or None,
                      current_time=current_time,
                      expiration_warning_len=parse_duration(
                        getattr(args, 'expiration_warning', DEFAULT_EXPIRATION_WARNING_INTERVAL)),
                      freshness_len=freshness_len,
                      max_validity_len=parse_duration(
                        getattr(args, 'max_validity', DEFAULT_MAX_VALIDITY_INTERVAL)),
                      timestamp_log=timestamp_log,
                      num_objects=num_objects,
                      quiet=getattr(args, 'quiet', False),
                      out_file=getattr(args, 'out_file', None),
                      security=getattr(args, 'security', False),
                      role=getattr(args, 'role', None),
                      target_dir=target_dir)


def setup_logging(config):
  log_args = {'level': config.log_level,
              'format': '%(asctime)s %(levelname)s %(name)s: %(message)s'}
  if config.log_file is not None:
    log_args['filename'] = config.log_file
  else:
    log_args['stream'] = sys.stderr
  logging.basicConfig(**log_args)
  logging.getLogger().setLevel(config.log_level)


def read_input(config, stdin):
  if config.md_file is None:
    return stdin.read()
  with open(config.md_file, 'rb') as f:
    return f.read()


def load(data):
  try:
    t = mdutils.parse_xml(io.BytesIO(data))
  except etree.XMLSyntaxError as ex:
    raise NotMetadata("input is not XML: %s" % ex)
  info = mdutils.parse_saml_metadata(t)
  if info is None:
    raise NotMetadata("not a SAML metadata document")
  return t, AttributeModel.from_doc_info(info)


def require_valid(config, data, out):
  t, model = load(data)

  # all computations share the same current time
  current_time = config.current_time or now_canonical()
  log.debug("currentTime: %s", current_time)

  verdict = evaluate(model, current_time)
  if not verdict.valid:
    log.error("removing invalid metadata from the pipeline: %s", verdict.status.value)
    return status_for_validity(verdict)

  out.write(data)
  out.flush()

  # best effort from here on: warnings are logged, the exit status stays 0
  warning = evaluate_warning(model, current_time, config.expiration_warning_len,
                             config.freshness_len)
  if warning.is_error:
    log.error("check of validity subintervals failed: %s", warning.kind.value)
  return ExitStatus.OK


def require_timestamps_filter(config, data, out):
  t, model = load(data)

  verdict = require_timestamps(model, config.max_validity_len)
  if not verdict.ok:
    log.error("removing metadata from the pipeline: %s", verdict.kind.value)
    return status_for_timestamps(verdict)

  out.write(data)
  out.flush()

  if config.timestamp_log:
    mdhistory.record(config.timestamp_log, now_canonical(), model)
  return ExitStatus.OK


def require_creation_instant_filter(config, data, out):
  t, model = load(data)

  current_time = config.current_time or now_canonical()
  verdict = require_creation_instant(model, current_time)
  if not verdict.ok:
    log.error("removing metadata from the pipeline: %s", verdict.kind.value)
    return status_for_timestamps(verdict)

  out.write(data)
  out.flush()
  return ExitStatus.OK


def sweep(config, data, out):
  """
  Remove expired metadata from a directory. Subdirectories, symlinks and
  files that are not SAML metadata are left alone.
  """
  current_time = config.current_time or now_canonical()
  log.debug("currentTime: %s", current_time)
  log.info("sweeping directory: %s", config.target_dir)

  removed = 0
  for filename in sorted(os.listdir(config.target_dir)):
    md_file = os.path.join(config.target_dir, filename)
    if os.path.islink(md_file) or not os.path.isfile(md_file):
      log.warning("not a regular file: %s", md_file)
      continue
    log.info("checking file: %s", md_file)
    with open(md_file, 'rb') as f:
      try:
        t, model = load(f.read())
      except NotMetadata as ex:
        log.warning("not a SAML metadata file: %s (%s)", md_file, ex)
        continue

    verdict = evaluate(model, current_time)
    if verdict.status is Validity.EXPIRED:
      log.warning("removing expired metadata: %s", md_file)
      os.remove(md_file)
      removed += 1
      continue
    if not verdict.valid:
      log.warning("keeping metadata that is not yet valid: %s", md_file)
      continue
    evaluate_warning(model, current_time, config.expiration_warning_len)

  log.info("removed %d expired metadata files from %s", removed, config.target_dir)
  return ExitStatus.OK


def vital_stats(config, data, out):
  t, model = load(data)

  current_time = now_canonical()
  log.info("currentTime: %s", current_time)

  if model.creation_instant is None or model.valid_until is None:
    log.error("creationInstant or validUntil missing: %s", model.describe())
    return ExitStatus.INVALID
  if not mdhistory.record(config.timestamp_log, current_time, model):
    return ExitStatus.FAILURE
  if config.quiet:
    return ExitStatus.OK

  log.info("using log file: %s", config.timestamp_log)
  output = mdhistory.tail_json(config.timestamp_log, config.num_objects) + '\n'
  if config.out_file is None:
    out.write(output.encode('utf8'))
  else:
    log.info("using output file: %s", config.out_file)
    with open(config.out_file, 'w', encoding='utf8') as f:
      f.write(output)
  return ExitStatus.OK


def printf(config, data, out):
  t, model = load(data)

  lines = []
  if config.md_file is not None:
    lines.append(F_SPEC % ("Metadata file name", config.md_file))
  lines.append(F_SPEC % ("Metadata file size", "%d bytes" % len(data)))
  for label, value in (("Document ID", model.doc_id),
                       ("Document publisher", model.publisher),
                       ("Document creationInstant", model.creation_instant),
                       ("Document validUntil", model.valid_until),
                       ("Document cacheDuration", model.cache_duration)):
    if value is not None:
      lines.append(F_SPEC % (label, value))

  if config.security:
    sig = mdutils.parse_ds_signature(t)
    if sig is None:
      lines.append("(the metadata document is NOT signed)\n")
    else:
      lines.append("Document signature---\n")
      for label, key in (("Reference URI", 'ReferenceURI'),
                         ("CanonicalizationMethod", 'CanonicalizationMethod'),
                         ("SignatureMethod", 'SignatureMethod'),
                         ("DigestMethod", 'DigestMethod'),
                         ("Cert serial number", 'serial'),
                         ("Cert start date", 'notBefore'),
                         ("Cert expiration date", 'notAfter'),
                         ("Cert subject common name", 'commonName'),
                         ("Cert key size (bits)", 'keySize'),
                         ("Cert SHA1 fingerprint", 'SHA1_fingerprint')):
        if key in sig:
          lines.append(F_SPEC_INDENTED % (label, sig[key]))

  if model.is_aggregate:
    roles = mdutils.parse_entity_roles(t)
    lines.append("Entities summary---\n")
    lines.append("%4d entities total, spread over %d registrars\n" %
                 (roles['numEntities'], roles['numRegistrars']))
    for role in mdutils.ROLE_DESCRIPTORS:
      n = roles['numEntitiesWith%s' % role]
      if n > 0:
        lines.append("%4d entities with at least one %s\n" % (n, role))

  out.write(''.join(lines).encode('utf8'))
  return ExitStatus.OK


def retain_role(config, data, out):
  t, model = load(data)
  if not model.is_aggregate:
    log.warning("not an aggregate, nothing to filter: %s", model.describe())
    return ExitStatus.WARNING
  mdutils.retain_entities_with_role(t, config.role)
  out.write(mdutils.serialize(t))
  return ExitStatus.OK


def build_parser():
  common = argparse.ArgumentParser(add_help=False)
  common.add_argument('-D', dest='debug', action='store_true', help='Enable DEBUG logging')
  common.add_argument('-W', dest='warn', action='store_true', help='Enable WARN logging')
  common.add_argument('--log-file', dest='log_file', default=None,
                      help='Append log messages to this file instead of stderr')

  source = argparse.ArgumentParser(add_help=False)
  source.add_argument('md_file', nargs='?', default=None,
                      help='SAML metadata file (default: stdin)')

  parser = argparse.ArgumentParser(prog='mdparser', description=__doc__)
  sub = parser.add_subparsers(dest='command', metavar='COMMAND')
  sub.required = True

  p = sub.add_parser('require-valid', parents=[common, source],
                     help='Pass the metadata on only if it is not expired and not created in the future')
  p.add_argument('-E', dest='expiration_warning', default=DEFAULT_EXPIRATION_WARNING_INTERVAL,
                 help='Length of the Expiration Warning Interval (default: %(default)s, PT0S disables)')
  p.add_argument('-F', dest='freshness', default=None,
                 help='Length of the Freshness Interval (no default)')
  p.add_argument('-t', dest='current_time', default=None,
                 help='ISO 8601 dateTime to use as the current time')
  p.set_defaults(func=require_valid)

  p = sub.add_parser('require-timestamps', parents=[common, source],
                     help='Pass the metadata on only if it has both @creationInstant and @validUntil')
  p.add_argument('-L', dest='max_validity', default=DEFAULT_MAX_VALIDITY_INTERVAL,
                 help='Maximum length of the validity interval (default: %(default)s)')
  p.add_argument('-f', dest='timestamp_log', default=None,
                 help='Timestamp log file to update')
  p.set_defaults(func=require_timestamps_filter)

  p = sub.add_parser('require-creation-instant', parents=[common, source],
                     help='Pass the metadata on only if its @creationInstant is in the past')
  p.add_argument('-t', dest='current_time', default=None,
                 help='ISO 8601 dateTime to use as the current time')
  p.set_defaults(func=require_creation_instant_filter)

  p = sub.add_parser('vital-stats', parents=[common, source],
                     help='Log the metadata timestamps and print the tail of the log as JSON')
  p.add_argument('-f', dest='timestamp_log', required=True, help='Timestamp log file')
  p.add_argument('-n', dest='num_objects', type=int, default=mdhistory.DEFAULT_NUM_OBJECTS,
                 help='Number of JSON objects to output (default: %(default)s)')
  p.add_argument('-q', dest='quiet', action='store_true', help='Update the log only')
  p.add_argument('-o', dest='out_file', default=None, help='Write the JSON to this file')
  p.set_defaults(func=vital_stats)

  p = sub.add_parser('printf', parents=[common, source], help='Summarize the metadata')
  p.add_argument('-s', dest='security', action='store_true', help='Output detailed security info')
  p.set_defaults(func=printf)

  p = sub.add_parser('retain-role', parents=[common, source],
                     help='Keep only the entities of an aggregate that have the given role')
  p.add_argument('role', choices=mdutils.ROLES)
  p.set_defaults(func=retain_role)

  p = sub.add_parser('sweep', parents=[common],
                     help='Remove expired metadata files from a directory')
  p.add_argument('-E', dest='expiration_warning', default=DEFAULT_EXPIRATION_WARNING_INTERVAL,
                 help='Length of the Expiration Warning Interval (default: %(default)s, PT0S disables)')
  p.add_argument('-t', dest='current_time', default=None,
                 help='ISO 8601 dateTime to use as the current time')
  p.add_argument('target_dir', help='Directory to sweep (not descended into)')
  p.set_defaults(func=sweep, reads_input=False)

  return parser


def main(argv=None, stdin=None, stdout=None, environ=os.environ):
  args = build_parser().parse_args(argv)
  stdin = stdin if stdin is not None else sys.stdin.buffer
  stdout = stdout if stdout is not None else sys.stdout.buffer

  try:
    config = configure(args, environ)
  except InvalidFormat as ex:
    sys.stderr.write("ERROR: %s: %s\n" % (args.command, ex))
    return int(ExitStatus.USAGE)
  setup_logging(config)

  log.info("%s BEGIN", config.command)
  try:
    data = read_input(config, stdin) if getattr(args, 'reads_input', True) else None
  except OSError as ex:
    log.error("input failed: %s", ex)
    status = ExitStatus.USAGE
  else:
    try:
      status = args.func(config, data, stdout)
    except NotMetadata as ex:
      log.warning(ex)
      status = ExitStatus.WARNING
    except Exception as ex:
      log.debug(traceback.format_exc())
      log.error(ex)
      status = ExitStatus.FAILURE
  log.info("%s END", config.command)
  return int(status)


if __name__ == "__main__":  # pragma: no cover
  sys.exit(main())
