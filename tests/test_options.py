"""Tests for generator options"""

from apigen import GeneratorOptions
from apigen.channel import DEFAULT_CHANNEL_PREFIX


class TestGeneratorOptions:

    def test_defaults(self):
        options = GeneratorOptions()
        assert options.channel_prefix == DEFAULT_CHANNEL_PREFIX
        assert options.to_map() == {'channel_prefix': DEFAULT_CHANNEL_PREFIX}

    def test_from_map_ignores_unknown_and_none(self):
        options = GeneratorOptions.from_map({'namespace': 'ns', 'header': None, 'bogus': 1})
        assert options.namespace == 'ns'
        assert options.header is None

    def test_map_round_trip(self):
        options = GeneratorOptions(
            namespace='ns', package='com.example', class_name='Messages',
            copyright_header=('Copyright', 'All rights reserved'),
        )
        values = options.to_map()
        assert values['copyright_header'] == ['Copyright', 'All rights reserved']
        assert GeneratorOptions.from_map(values) == options

    def test_merge_overrides_set_values(self):
        base = GeneratorOptions(namespace='a', package='com.a', channel_prefix='custom')
        merged = base.merge(GeneratorOptions(namespace='b'))
        assert merged.namespace == 'b'
        assert merged.package == 'com.a'
        assert merged.channel_prefix == 'custom'

    def test_merge_channel_prefix(self):
        merged = GeneratorOptions().merge(GeneratorOptions(channel_prefix='com.example'))
        assert merged.channel_prefix == 'com.example'
