import logging
from lxml import etree
from cryptography import x509
from cryptography.x509.oid import NameOID
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.backends import default_backend

from mdtime import canonical

log = logging.getLogger(__name__)

NS = dict(md="urn:oasis:names:tc:SAML:2.0:metadata",
          ds='http://www.w3.org/2000/09/xmldsig#',
          mdui="urn:oasis:names:tc:SAML:metadata:ui",
          mdattr="urn:oasis:names:tc:SAML:metadata:attribute",
          mdrpi="urn:oasis:names:tc:SAML:metadata:rpi",
          shibmd="urn:mace:shibboleth:metadata:1.0",
          xml='http://www.w3.org/XML/1998/namespace',
          saml="urn:oasis:names:tc:SAML:2.0:assertion",
          xs="http://www.w3.org/2001/XMLSchema",
          xsi="http://www.w3.org/2001/XMLSchema-instance")

ENTITY_TAG = '{%s}EntityDescriptor' % NS['md']
ENTITIES_TAG = '{%s}EntitiesDescriptor' % NS['md']

ROLE_DESCRIPTORS = ('SPSSODescriptor', 'IDPSSODescriptor', 'AttributeAuthorityDescriptor',
                    'AuthnAuthorityDescriptor', 'PDPDescriptor')

# roles an aggregate can be filtered on
ROLES = ('IDPSSODescriptor', 'SPSSODescriptor')


def parse_xml(io):
  return etree.parse(io, parser=etree.XMLParser(resolve_entities=False, collect_ids=False))


def root(t):
  if hasattr(t, 'getroot') and hasattr(t.getroot, '__call__'):
    return t.getroot()
  else:
    return t


def local_name(e):
  return etree.QName(e).localname


def _set(info, key, value):
  if value is not None and value.strip():
    info[key] = value.strip()


def parse_saml_metadata(t):
  """
  Extract the attributes of the top-level element as a flat dict whose first
  key is the element's local name. Returns None if t is not SAML metadata.
  """
  t = root(t)
  if t.tag not in (ENTITY_TAG, ENTITIES_TAG):
    log.warning("input is not SAML metadata: %s", t.tag)
    return None

  info = {local_name(t): NS['md']}
  for key in ('ID', 'entityID', 'creationInstant', 'validUntil', 'cacheDuration'):
    _set(info, key, t.get(key))

  ext = t.find('{%s}Extensions' % NS['md'])
  if ext is not None:
    pub = ext.find('{%s}PublicationInfo' % NS['mdrpi'])
    if pub is not None:
      _set(info, 'publisher', pub.get('publisher'))
      if 'creationInstant' not in info:
        _set(info, 'creationInstant', pub.get('creationInstant'))
    reg = ext.find('{%s}RegistrationInfo' % NS['mdrpi'])
    if reg is not None:
      _set(info, 'registrationAuthority', reg.get('registrationAuthority'))

  log.info("input parsed: %s/@ID=%s", local_name(t), info.get('ID', ''))
  return info


def _pem(text):
  cert = ''.join(text.split())
  pem = ""
  s = 0
  while s < len(cert):
    pem += "\n%s" % cert[s:s + 64]
    s += 64
  return '-----BEGIN CERTIFICATE-----' + pem + '\n-----END CERTIFICATE-----'


def load_certificate(text):
  try:
    return x509.load_pem_x509_certificate(_pem(text).encode('utf8'), default_backend())
  except ValueError as ex:
    raise ValueError("unable to decode X509Certificate: %s" % ex)


def _fingerprint(cert):
  return ':'.join('%02X' % b for b in cert.fingerprint(hashes.SHA1()))


def certificate_info(cert):
  info = dict()
  info['serial'] = '%X' % cert.serial_number
  info['notBefore'] = canonical(cert.not_valid_before_utc)
  info['notAfter'] = canonical(cert.not_valid_after_utc)
  cn = cert.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
  if cn:
    info['commonName'] = cn[0].value
  key_size = getattr(cert.public_key(), 'key_size', None)
  if key_size is not None:
    info['keySize'] = str(key_size)
  info['SHA1_fingerprint'] = _fingerprint(cert)
  return info


def parse_ds_signature(t):
  """
  Read (but do not verify) the enveloped signature on the top-level element.
  Returns None if the document is not signed.
  """
  t = root(t)
  sig = t.find('{%s}Signature' % NS['ds'])
  if sig is None:
    log.info("document is not signed")
    return None

  info = {local_name(t): NS['md']}
  _set(info, 'ID', t.get('ID'))
  signed_info = sig.find('{%s}SignedInfo' % NS['ds'])
  if signed_info is not None:
    ref = signed_info.find('{%s}Reference' % NS['ds'])
    if ref is not None:
      _set(info, 'ReferenceURI', ref.get('URI'))
      digest = ref.find('{%s}DigestMethod' % NS['ds'])
      if digest is not None:
        _set(info, 'DigestMethod', digest.get('Algorithm'))
    for name in ('CanonicalizationMethod', 'SignatureMethod'):
      e = signed_info.find('{%s}%s' % (NS['ds'], name))
      if e is not None:
        _set(info, name, e.get('Algorithm'))

  cert = sig.find('.//{%s}X509Certificate' % NS['ds'])
  if cert is not None and cert.text:
    info.update(certificate_info(load_certificate(cert.text)))
  else:
    log.warning("signature has no X509Certificate")
  return info


def entities(t):
  t = root(t)
  if t.tag == ENTITY_TAG:
    return [t]
  return list(t.iter(ENTITY_TAG))


def has_role(e, role):
  return e.find('{%s}%s' % (NS['md'], role)) is not None


def parse_entity_roles(t):
  ents = entities(t)
  registrars = set()
  for e in ents:
    reg = e.find('{%s}Extensions/{%s}RegistrationInfo' % (NS['md'], NS['mdrpi']))
    if reg is not None and reg.get('registrationAuthority'):
      registrars.add(reg.get('registrationAuthority'))

  info = dict(numEntities=len(ents), numRegistrars=len(registrars))
  for role in ROLE_DESCRIPTORS:
    info['numEntitiesWith%s' % role] = sum(1 for e in ents if has_role(e, role))
  return info


def retain_entities_with_role(t, role):
  """
  Remove every EntityDescriptor lacking the given role from an aggregate,
  in place. The top-level signature no longer holds and is removed too.
  """
  if role not in ROLES:
    raise ValueError("unsupported role descriptor: %s" % role)
  t = root(t)
  if t.tag != ENTITIES_TAG:
    raise ValueError("not an aggregate: %s" % t.tag)

  removed = 0
  for e in entities(t):
    if not has_role(e, role):
      e.getparent().remove(e)
      removed += 1
  sig = t.find('{%s}Signature' % NS['ds'])
  if sig is not None and removed:
    t.remove(sig)
  log.info("removed %d entities without %s", removed, role)
  return removed


def serialize(t):
  return etree.tostring(t, xml_declaration=True, encoding='UTF-8')
