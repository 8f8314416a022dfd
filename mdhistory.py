import os
import json
import logging
from collections import namedtuple, deque

from mdtime import secs_between, canonical2secs, iso2datetime, InvalidFormat

log = logging.getLogger(__name__)

DEFAULT_NUM_OBJECTS = 10


class TimestampRecord(namedtuple('TimestampRecord', ['current_time', 'creation_instant', 'valid_until'])):
  __slots__ = ()

  def to_line(self):
    return "%s\t%s\t%s\n" % self


def append(path, current_time, creation_instant, valid_until):
  """
  Append one record to the timestamp log with a single O_APPEND write,
  so concurrent writers never interleave partial lines.
  """
  line = TimestampRecord(current_time, creation_instant, valid_until).to_line().encode('utf8')
  fd = os.open(path, os.O_WRONLY | os.O_APPEND | os.O_CREAT, 0o644)
  try:
    os.write(fd, line)
  finally:
    os.close(fd)


def record(path, current_time, model):
  """
  Best effort: a failure is logged and reported as False, never raised.
  """
  if model.creation_instant is None or model.valid_until is None:
    log.error("cannot update timestamp log %s: creationInstant or validUntil missing", path)
    return False
  try:
    append(path, current_time, model.creation_instant, model.valid_until)
  except OSError as ex:
    log.error("failed to update timestamp log %s: %s", path, ex)
    return False
  log.debug("timestamp log updated: %s", path)
  return True


def _well_formed(fields):
  if len(fields) != 3:
    return False
  try:
    for field in fields:
      iso2datetime(field)
  except InvalidFormat:
    return False
  return True


def tail(path, n=DEFAULT_NUM_OBJECTS):
  if n < 1:
    raise ValueError("number of records must be a positive integer: %s" % n)
  records = deque(maxlen=n)
  with open(path, 'r', encoding='utf8') as f:
    for lineno, line in enumerate(f, 1):
      line = line.rstrip('\r\n')
      if not line:
        continue
      fields = line.split('\t')
      if not _well_formed(fields):
        log.warning("%s:%d: skipping malformed timestamp record", path, lineno)
        continue
      records.append(TimestampRecord(*fields))
  return list(records)


def _secs(secs):
  return {
    'secs': secs,
    'hours': round(secs / 3600.0, 2),
    'days': round(secs / 86400.0, 2),
  }


def timestamp_object(rec):
  return {
    'currentDateTime': rec.current_time,
    'creationInstant': rec.creation_instant,
    'validUntil': rec.valid_until,
    'sinceEpoch': _secs(canonical2secs(rec.current_time)),
    'sinceCreation': _secs(secs_between(rec.creation_instant, rec.current_time)),
    'untilExpiration': _secs(secs_between(rec.current_time, rec.valid_until)),
    'validityInterval': _secs(secs_between(rec.creation_instant, rec.valid_until)),
  }


def tail_json(path, n=DEFAULT_NUM_OBJECTS):
  return json.dumps([timestamp_object(rec) for rec in tail(path, n)], indent=2)
