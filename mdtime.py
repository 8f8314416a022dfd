import re
from datetime import datetime, timedelta, timezone
import iso8601

CANONICAL_FORMAT = '%Y-%m-%dT%H:%M:%SZ'

DURATION_RE = re.compile(r'^P(?:(?P<days>\d+)D)?'
                         r'(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+)S)?)?$')

# date part units that have no fixed length in seconds
CALENDAR_RE = re.compile(r'^-?P(?:\d+Y)?(?:\d+M)?(?:\d+W)?')

UNITS = (('D', 86400), ('H', 3600), ('M', 60), ('S', 1))


class InvalidFormat(ValueError):
  pass


class Duration(object):
  """
  A non-negative span of whole seconds, remembering the ISO 8601 text it came from
  """
  __slots__ = ('secs', 'text')

  def __init__(self, secs, text=None):
    if secs < 0:
      raise InvalidFormat("negative duration: %s" % secs)
    self.secs = int(secs)
    self.text = text

  def __int__(self):
    return self.secs

  def __bool__(self):
    return self.secs != 0

  def __eq__(self, other):
    if isinstance(other, Duration):
      return self.secs == other.secs
    return NotImplemented

  def __hash__(self):
    return hash(self.secs)

  def __str__(self):
    if self.text is not None:
      return self.text
    return format_duration(self.secs)

  def __repr__(self):
    return "Duration(%d, %r)" % (self.secs, str(self))


def parse_duration(text):
  if isinstance(text, Duration):
    return text
  if text is None:
    raise InvalidFormat("duration required")
  s = text.strip()
  m = DURATION_RE.match(s)
  if m is None or s in ('P', 'PT') or s.endswith('T'):
    c = CALENDAR_RE.match(s)
    if c is not None and c.group(0) not in ('P', '-P', '') and not s.startswith('-'):
      raise InvalidFormat("calendar units (years, months, weeks) not supported: %s" % text)
    raise InvalidFormat("not an ISO 8601 duration of days/hours/minutes/seconds: %s" % text)
  secs = 0
  for (_, factor), name in zip(UNITS, ('days', 'hours', 'minutes', 'seconds')):
    value = m.group(name)
    if value is not None:
      secs += int(value) * factor
  return Duration(secs, s)


def duration2secs(duration):
  return parse_duration(duration).secs


def format_duration(secs):
  secs = int(secs)
  if secs < 0:
    raise InvalidFormat("negative duration: %s" % secs)
  if secs == 0:
    return 'PT0S'
  parts = []
  for unit, factor in UNITS:
    n, secs = divmod(secs, factor)
    parts.append((n, unit))
  days = parts[0]
  out = 'P'
  if days[0]:
    out += '%d%s' % days
  time = ''.join('%d%s' % p for p in parts[1:] if p[0])
  if time:
    out += 'T' + time
  return out


def secs2duration(secs):
  return Duration(secs, format_duration(secs))


def iso2datetime(s):
  try:
    return iso8601.parse_date(s)
  except iso8601.ParseError as ex:
    raise InvalidFormat("not an ISO 8601 dateTime: %s (%s)" % (s, ex))


def canonical(dt):
  if dt.tzinfo is not None:
    dt = dt.astimezone(timezone.utc)
  return dt.strftime(CANONICAL_FORMAT)


def now_canonical():
  return canonical(datetime.now(timezone.utc))


def canonical2secs(s):
  return int(iso2datetime(s).timestamp())


def secs_between(t1, t2):
  """
  Signed number of seconds from t1 to t2, negative when t1 is later
  """
  delta = iso2datetime(t2).replace(microsecond=0) - iso2datetime(t1).replace(microsecond=0)
  return int(delta.total_seconds())


def datetime_delta(s, duration, before=True):
  """
  The dateTime at the given duration before (or after) the anchor s,
  in canonical form.
  """
  offset = timedelta(seconds=duration2secs(duration))
  dt = iso2datetime(s)
  return canonical(dt - offset if before else dt + offset)
