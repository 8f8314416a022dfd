CREATION_INSTANT = '2018-02-03T20:32:53Z'
VALID_UNTIL = '2018-02-07T20:32:53Z'

AGGREGATE = """<?xml version="1.0" encoding="UTF-8"?>
<md:EntitiesDescriptor xmlns:md="urn:oasis:names:tc:SAML:2.0:metadata"
    xmlns:mdrpi="urn:oasis:names:tc:SAML:metadata:rpi"
    ID="INC20180203T203253" Name="urn:mace:incommon" validUntil="2018-02-07T20:32:53Z">
  <md:Extensions>
    <mdrpi:PublicationInfo creationInstant="2018-02-03T20:32:53Z" publisher="https://incommon.org"/>
  </md:Extensions>
  <md:EntityDescriptor entityID="https://idp.example.org/idp/shibboleth">
    <md:Extensions>
      <mdrpi:RegistrationInfo registrationAuthority="https://incommon.org"/>
    </md:Extensions>
    <md:IDPSSODescriptor protocolSupportEnumeration="urn:oasis:names:tc:SAML:2.0:protocol"/>
    <md:AttributeAuthorityDescriptor protocolSupportEnumeration="urn:oasis:names:tc:SAML:2.0:protocol"/>
  </md:EntityDescriptor>
  <md:EntityDescriptor entityID="https://sp.example.org/shibboleth">
    <md:Extensions>
      <mdrpi:RegistrationInfo registrationAuthority="https://incommon.org"/>
    </md:Extensions>
    <md:SPSSODescriptor protocolSupportEnumeration="urn:oasis:names:tc:SAML:2.0:protocol"/>
  </md:EntityDescriptor>
  <md:EntityDescriptor entityID="https://sp.example.edu/shibboleth">
    <md:Extensions>
      <mdrpi:RegistrationInfo registrationAuthority="https://edugain.org"/>
    </md:Extensions>
    <md:SPSSODescriptor protocolSupportEnumeration="urn:oasis:names:tc:SAML:2.0:protocol"/>
  </md:EntityDescriptor>
</md:EntitiesDescriptor>
"""

ENTITY = """<?xml version="1.0" encoding="UTF-8"?>
<md:EntityDescriptor xmlns:md="urn:oasis:names:tc:SAML:2.0:metadata"
    ID="_a1b2c3" entityID="https://idp.example.org/idp/shibboleth"
    creationInstant="2018-02-03T20:32:53Z" validUntil="2018-02-07T20:32:53Z" cacheDuration="PT6H">
  <md:IDPSSODescriptor protocolSupportEnumeration="urn:oasis:names:tc:SAML:2.0:protocol"/>
</md:EntityDescriptor>
"""

ENTITY_WITHOUT_TIMESTAMPS = """<?xml version="1.0" encoding="UTF-8"?>
<md:EntityDescriptor xmlns:md="urn:oasis:names:tc:SAML:2.0:metadata"
    entityID="https://sp.example.org/shibboleth">
  <md:SPSSODescriptor protocolSupportEnumeration="urn:oasis:names:tc:SAML:2.0:protocol"/>
</md:EntityDescriptor>
"""

NOT_METADATA = """<?xml version="1.0" encoding="UTF-8"?>
<html><body>Not Found</body></html>
"""

NOT_XML = "<md:EntityDescriptor"

CERTIFICATE = """
MIIDAjCCAeqgAwIBAgIDGis8MA0GCSqGSIb3DQEBCwUAMBkxFzAVBgNVBAMMDm1k
LmV4YW1wbGUub3JnMB4XDTI2MTAxODA0MDI1M1oXDTM2MTAxNTA0MDI1M1owGTEX
MBUGA1UEAwwObWQuZXhhbXBsZS5vcmcwggEiMA0GCSqGSIb3DQEBAQUAA4IBDwAw
ggEKAoIBAQCm/n8RPH2ENm2+Hpi9Bmg0L568C78y3cKAKVWaOVXmvlSBrZvq/C/9
VB0Dio6FPCthKPZtgOLtYZEYdaCT5oGi6opYgzJ7dJMd1D22IOWu8Z/EpYsbax8d
8R5Mp3jDCGj9EKTEv1MFipg/ppSfMAEyIibonsoiTruKUMaKQExw39DqgNA5Rk9D
D0ILgVsmGjRBuIUoZ7GrVCZw2ZJU0DNlmgXdTD10074nTQ9f0YS0GrNeb5ZOMBwx
6R0G862JYu9/JoRCeESlngLgjdwApQeCf9Gl27Wo0nQBpz4AwUpOYKkUT7G+XT7c
ceoUw9W7rNi7KjZ83+M+SqdbJh5byU1BAgMBAAGjUzBRMB0GA1UdDgQWBBRnPAoQ
st7pGiy++1/KPA0/HLLEgzAfBgNVHSMEGDAWgBRnPAoQst7pGiy++1/KPA0/HLLE
gzAPBgNVHRMBAf8EBTADAQH/MA0GCSqGSIb3DQEBCwUAA4IBAQArVko6dLR5xnS+
fa4LkkB23BfEhk5OMTD3WUYjwSHH6ULPfS3NMpMtaAJaP/NEblXZ2zALVsmtFf64
XgtrgbfN5A03rHawNRA1UF2Op9KwaSNNQQcAIdB7yiODp2cr2HxHKid2w+raaZuu
Qz/3k9+Ehp/IPzMXgGtWmVAs1CqDklnz+huBr8GZQx70m5LQa2gAipiXVChIndvy
X6osBUJwKUv6v+Zml2rIXyr89lqPvZ8cM9zbunQbxAbrlIxpWld7kYtCLmvnK5rL
u8/ZUedWBlYWBQxdJoakj0r1/VpnUjHHXEXbbJiglkBncLcJenXprFJrOQehhDw8
kTTzCGc2
"""

CERTIFICATE_SERIAL = '1A2B3C'
CERTIFICATE_NOT_BEFORE = '2026-10-18T04:02:53Z'
CERTIFICATE_NOT_AFTER = '2036-10-15T04:02:53Z'
CERTIFICATE_FINGERPRINT = '9C:76:1B:E2:A8:A5:0F:FD:03:B9:4C:14:ED:9A:4E:59:96:EE:27:FC'

SIGNED_ENTITY = """<?xml version="1.0" encoding="UTF-8"?>
<md:EntityDescriptor xmlns:md="urn:oasis:names:tc:SAML:2.0:metadata"
    xmlns:ds="http://www.w3.org/2000/09/xmldsig#"
    ID="_signed" entityID="https://idp.example.org/idp/shibboleth" validUntil="2018-02-07T20:32:53Z">
  <ds:Signature>
    <ds:SignedInfo>
      <ds:CanonicalizationMethod Algorithm="http://www.w3.org/2001/10/xml-exc-c14n#"/>
      <ds:SignatureMethod Algorithm="http://www.w3.org/2001/04/xmldsig-more#rsa-sha256"/>
      <ds:Reference URI="#_signed">
        <ds:DigestMethod Algorithm="http://www.w3.org/2001/04/xmlenc#sha256"/>
        <ds:DigestValue>AAAA</ds:DigestValue>
      </ds:Reference>
    </ds:SignedInfo>
    <ds:SignatureValue>AAAA</ds:SignatureValue>
    <ds:KeyInfo>
      <ds:X509Data>
        <ds:X509Certificate>%s</ds:X509Certificate>
      </ds:X509Data>
    </ds:KeyInfo>
  </ds:Signature>
  <md:IDPSSODescriptor protocolSupportEnumeration="urn:oasis:names:tc:SAML:2.0:protocol"/>
</md:EntityDescriptor>
""" % CERTIFICATE
