"""
Numbering-plan reference data.

Plain tables, no logic. Order matters in LOCAL_FORMATS: when a local
(0-prefixed) number's digit count fits several countries, the first row
wins. CARRIER_BLOCKS are matched on the digits after the calling code.
"""

from typing import NamedTuple


class CountryPlan(NamedTuple):
    iso: str
    calling_code: str
    name: str


class LocalFormat(NamedTuple):
    calling_code: str
    local_length: int  # digits including the leading 0


class CarrierBlock(NamedTuple):
    iso: str
    prefix: str
    network: str
    operator: str


AFRICAN_COUNTRIES = [
    CountryPlan('GH', '233', 'Ghana'),
    CountryPlan('NG', '234', 'Nigeria'),
    CountryPlan('KE', '254', 'Kenya'),
    CountryPlan('ZA', '27', 'South Africa'),
    CountryPlan('UG', '256', 'Uganda'),
    CountryPlan('TZ', '255', 'Tanzania'),
    CountryPlan('RW', '250', 'Rwanda'),
    CountryPlan('CI', '225', "Cote d'Ivoire"),
    CountryPlan('SN', '221', 'Senegal'),
    CountryPlan('CM', '237', 'Cameroon'),
    CountryPlan('EG', '20', 'Egypt'),
    CountryPlan('MA', '212', 'Morocco'),
    CountryPlan('DZ', '213', 'Algeria'),
    CountryPlan('ET', '251', 'Ethiopia'),
    CountryPlan('BF', '226', 'Burkina Faso'),
    CountryPlan('ML', '223', 'Mali'),
    CountryPlan('ZM', '260', 'Zambia'),
    CountryPlan('ZW', '263', 'Zimbabwe'),
    CountryPlan('BW', '267', 'Botswana'),
    CountryPlan('MZ', '258', 'Mozambique'),
    CountryPlan('MW', '265', 'Malawi'),
    CountryPlan('AO', '244', 'Angola'),
    CountryPlan('CD', '243', 'DR Congo'),
    CountryPlan('CG', '242', 'Congo'),
    CountryPlan('GA', '241', 'Gabon'),
    CountryPlan('GN', '224', 'Guinea'),
    CountryPlan('TD', '235', 'Chad'),
    CountryPlan('SO', '252', 'Somalia'),
    CountryPlan('SD', '249', 'Sudan'),
    CountryPlan('SS', '211', 'South Sudan'),
    CountryPlan('LY', '218', 'Libya'),
    CountryPlan('TN', '216', 'Tunisia'),
    CountryPlan('MR', '222', 'Mauritania'),
    CountryPlan('NE', '227', 'Niger'),
    CountryPlan('BJ', '229', 'Benin'),
    CountryPlan('TG', '228', 'Togo'),
    CountryPlan('LR', '231', 'Liberia'),
    CountryPlan('SL', '232', 'Sierra Leone'),
    CountryPlan('GM', '220', 'Gambia'),
    CountryPlan('GW', '245', 'Guinea-Bissau'),
    CountryPlan('CV', '238', 'Cape Verde'),
    CountryPlan('ST', '239', 'Sao Tome and Principe'),
    CountryPlan('GQ', '240', 'Equatorial Guinea'),
    CountryPlan('DJ', '253', 'Djibouti'),
    CountryPlan('ER', '291', 'Eritrea'),
    CountryPlan('KM', '269', 'Comoros'),
    CountryPlan('SC', '248', 'Seychelles'),
    CountryPlan('MU', '230', 'Mauritius'),
    CountryPlan('RE', '262', 'Reunion'),
]

# Common non-African destinations, accepted with a warning.
OTHER_COUNTRIES = [
    CountryPlan('US', '1', 'United States'),
    CountryPlan('GB', '44', 'United Kingdom'),
    CountryPlan('FR', '33', 'France'),
    CountryPlan('DE', '49', 'Germany'),
    CountryPlan('IN', '91', 'India'),
    CountryPlan('CN', '86', 'China'),
    CountryPlan('AE', '971', 'United Arab Emirates'),
]

AFRICAN_ISO_CODES = frozenset(c.iso for c in AFRICAN_COUNTRIES)

LOCAL_FORMATS = [
    LocalFormat('233', 10),
    LocalFormat('234', 11),
    LocalFormat('254', 10),
    LocalFormat('27', 10),
    LocalFormat('256', 10),
    LocalFormat('255', 10),
    LocalFormat('250', 10),
    LocalFormat('225', 10),
    LocalFormat('221', 9),
    LocalFormat('237', 9),
    LocalFormat('20', 11),
    LocalFormat('212', 10),
    LocalFormat('213', 10),
    LocalFormat('251', 10),
]

CARRIER_BLOCKS = [
    # Ghana
    CarrierBlock('GH', '20', 'telecel', 'Telecel Ghana'),
    CarrierBlock('GH', '50', 'telecel', 'Telecel Ghana'),
    CarrierBlock('GH', '23', 'telecel', 'Telecel Ghana'),
    CarrierBlock('GH', '28', 'telecel', 'Telecel Ghana'),
    CarrierBlock('GH', '24', 'mtn', 'MTN Ghana'),
    CarrierBlock('GH', '54', 'mtn', 'MTN Ghana'),
    CarrierBlock('GH', '55', 'mtn', 'MTN Ghana'),
    CarrierBlock('GH', '53', 'mtn', 'MTN Ghana'),
    CarrierBlock('GH', '59', 'mtn', 'MTN Ghana'),
    CarrierBlock('GH', '26', 'airteltigo', 'AirtelTigo'),
    CarrierBlock('GH', '56', 'airteltigo', 'AirtelTigo'),
    CarrierBlock('GH', '27', 'airteltigo', 'AirtelTigo'),
    CarrierBlock('GH', '57', 'airteltigo', 'AirtelTigo'),
    # Nigeria
    CarrierBlock('NG', '803', 'mtn', 'MTN Nigeria'),
    CarrierBlock('NG', '806', 'mtn', 'MTN Nigeria'),
    CarrierBlock('NG', '810', 'mtn', 'MTN Nigeria'),
    CarrierBlock('NG', '813', 'mtn', 'MTN Nigeria'),
    CarrierBlock('NG', '816', 'mtn', 'MTN Nigeria'),
    CarrierBlock('NG', '903', 'mtn', 'MTN Nigeria'),
    CarrierBlock('NG', '906', 'mtn', 'MTN Nigeria'),
    CarrierBlock('NG', '805', 'glo', 'Globacom'),
    CarrierBlock('NG', '807', 'glo', 'Globacom'),
    CarrierBlock('NG', '811', 'glo', 'Globacom'),
    CarrierBlock('NG', '815', 'glo', 'Globacom'),
    CarrierBlock('NG', '905', 'glo', 'Globacom'),
    CarrierBlock('NG', '802', 'airtel', 'Airtel Nigeria'),
    CarrierBlock('NG', '808', 'airtel', 'Airtel Nigeria'),
    CarrierBlock('NG', '812', 'airtel', 'Airtel Nigeria'),
    CarrierBlock('NG', '901', 'airtel', 'Airtel Nigeria'),
    CarrierBlock('NG', '902', 'airtel', 'Airtel Nigeria'),
    CarrierBlock('NG', '907', 'airtel', 'Airtel Nigeria'),
    CarrierBlock('NG', '809', '9mobile', '9mobile'),
    CarrierBlock('NG', '817', '9mobile', '9mobile'),
    CarrierBlock('NG', '818', '9mobile', '9mobile'),
    CarrierBlock('NG', '909', '9mobile', '9mobile'),
    # Kenya
    *[CarrierBlock('KE', f'70{d}', 'safaricom', 'Safaricom') for d in '123456789'],
    *[CarrierBlock('KE', f'71{d}', 'airtel', 'Airtel Kenya') for d in '012345'],
    *[CarrierBlock('KE', f'77{d}', 'telkom', 'Telkom Kenya') for d in '012345'],
    # South Africa
    CarrierBlock('ZA', '82', 'vodacom', 'Vodacom'),
    CarrierBlock('ZA', '83', 'vodacom', 'Vodacom'),
    CarrierBlock('ZA', '84', 'vodacom', 'Vodacom'),
    CarrierBlock('ZA', '71', 'mtn', 'MTN South Africa'),
    CarrierBlock('ZA', '72', 'mtn', 'MTN South Africa'),
    CarrierBlock('ZA', '73', 'mtn', 'MTN South Africa'),
    CarrierBlock('ZA', '74', 'mtn', 'MTN South Africa'),
    CarrierBlock('ZA', '76', 'mtn', 'MTN South Africa'),
    CarrierBlock('ZA', '78', 'mtn', 'MTN South Africa'),
    CarrierBlock('ZA', '81', 'cellc', 'Cell C'),
]
