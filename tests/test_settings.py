import os
import tempfile

from pydantic import ValidationError

from tokenswap.conf import MAINNET_SETTINGS_FILEPATH, UNITTESTS_SETTINGS_FILEPATH
from tokenswap.conf.get_settings import get_global_settings, get_settings_source
from tokenswap.conf.settings import SwapSettings
from tokenswap.utils.yaml import dict_from_extended_yaml, dict_from_yaml
from tests.unittest import TestCase


class SettingsTestCase(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.tmpdir = tempfile.mkdtemp()

    def tearDown(self) -> None:
        for name in os.listdir(self.tmpdir):
            os.remove(os.path.join(self.tmpdir, name))
        os.rmdir(self.tmpdir)
        super().tearDown()

    def write(self, name: str, contents: str) -> str:
        path = os.path.join(self.tmpdir, name)
        with open(path, 'w') as f:
            f.write(contents)
        return path

    def test_unittests_settings(self) -> None:
        settings = get_global_settings()
        self.assertEqual(settings.NETWORK_NAME, 'unittests')
        self.assertEqual(get_settings_source(), UNITTESTS_SETTINGS_FILEPATH)
        self.assertEqual(settings.FEE_BPS, 30)
        self.assertEqual(settings.MINIMUM_LIQUIDITY, 1_000)
        self.assertEqual(settings.MIN_LIQUIDITY_PRODUCT, 10**8)
        self.assertEqual(settings.MAX_PROTOCOL_FEE_RATE, 50)
        self.assertEqual(settings.CUSTODY_ADDRESS, bytes.fromhex('00' * 31 + '01'))
        self.assertEqual(settings.LOCKED_LIQUIDITY_HOLDER, bytes(32))

    def test_mainnet_settings(self) -> None:
        settings = SwapSettings.from_yaml(filepath=MAINNET_SETTINGS_FILEPATH)
        self.assertEqual(settings.NETWORK_NAME, 'mainnet')

    def test_extends(self) -> None:
        self.write('base.yml', 'NETWORK_NAME: base\nFEE_BPS: 25\nNESTED:\n  a: 1\n  b: 2\n')
        path = self.write('child.yml', 'extends: base.yml\nFEE_BPS: 5\nNESTED:\n  b: 3\n')
        self.assertEqual(dict_from_extended_yaml(filepath=path), {
            'NETWORK_NAME': 'base',
            'FEE_BPS': 5,
            'NESTED': {'a': 1, 'b': 3},
        })

    def test_yaml_errors(self) -> None:
        with self.assertRaises(ValueError):
            dict_from_yaml(filepath=os.path.join(self.tmpdir, 'missing.yml'))
        with self.assertRaises(ValueError):
            dict_from_yaml(filepath=self.write('list.yml', '- 1\n- 2\n'))
        self.assertEqual(dict_from_yaml(filepath=self.write('empty.yml', '')), {})

    def test_validation(self) -> None:
        SwapSettings(NETWORK_NAME='x', CUSTODY_ADDRESS='0x' + '02' * 32)
        with self.assertRaises(ValidationError):
            SwapSettings(NETWORK_NAME='x', FEE_BPS=2_000)
        with self.assertRaises(ValidationError):
            SwapSettings(NETWORK_NAME='x', FEE_BPS=-1)
        with self.assertRaises(ValidationError):
            SwapSettings(NETWORK_NAME='x', DEFAULT_PROTOCOL_FEE_RATE=60)
        with self.assertRaises(ValidationError):
            SwapSettings(NETWORK_NAME='x', CUSTODY_ADDRESS=bytes(32))
        with self.assertRaises(ValidationError):
            SwapSettings(NETWORK_NAME='x', UNKNOWN=1)  # type: ignore[call-arg]

    def test_frozen(self) -> None:
        settings = get_global_settings()
        with self.assertRaises(ValidationError):
            settings.FEE_BPS = 10  # type: ignore[misc]
