from django.test import SimpleTestCase

from messaging.units import GSM7, UCS2, calculate_units, render_template, sanitize_message


class CalculateUnitsTestCase(SimpleTestCase):

    def test_empty_message(self):
        self.assertEqual(calculate_units('').units, 0)
        self.assertEqual(calculate_units(None).units, 0)

    def test_gsm7_boundaries(self):
        self.assertEqual(calculate_units('a' * 160).units, 1)
        self.assertEqual(calculate_units('a' * 161).units, 2)
        self.assertEqual(calculate_units('a' * 306).units, 2)
        self.assertEqual(calculate_units('a' * 307).units, 3)
        self.assertEqual(calculate_units('a' * 160).encoding, GSM7)

    def test_concatenated_parts_use_smaller_size(self):
        result = calculate_units('a' * 161)
        self.assertEqual(result.chars_per_unit, 153)

    def test_single_emoji_is_one_ucs2_unit(self):
        result = calculate_units('\U0001F600')
        self.assertEqual(result.encoding, UCS2)
        self.assertEqual(result.length, 2)
        self.assertEqual(result.units, 1)

    def test_ucs2_boundaries(self):
        self.assertEqual(calculate_units('ж' * 70).units, 1)
        self.assertEqual(calculate_units('ж' * 71).units, 2)

    def test_long_ucs2_message(self):
        self.assertEqual(calculate_units('ж' * 1600).units, 24)

    def test_extension_table_characters_force_ucs2(self):
        self.assertEqual(calculate_units('Price: 5€').encoding, UCS2)
        self.assertEqual(calculate_units('{braces}').encoding, UCS2)

    def test_gsm_accented_characters_stay_gsm7(self):
        self.assertEqual(calculate_units('Café à Dakar').encoding, GSM7)


class TemplateTestCase(SimpleTestCase):

    def test_both_placeholder_styles_case_insensitive(self):
        text = render_template('Hi {{Name}}, code {CODE}', {'name': 'Ama', 'code': 42})
        self.assertEqual(text, 'Hi Ama, code 42')

    def test_unknown_placeholders_are_left(self):
        self.assertEqual(render_template('Hi {name}', {'other': 'x'}), 'Hi {name}')

    def test_sanitize(self):
        self.assertEqual(sanitize_message('  a    b\r\n\n\n\nc  '), 'a b\n\nc')
