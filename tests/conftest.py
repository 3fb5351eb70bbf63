import os

from tokenswap.conf import UNITTESTS_SETTINGS_FILEPATH

os.environ['TOKENSWAP_CONFIG_YAML'] = os.environ.get('TOKENSWAP_TEST_CONFIG_YAML', UNITTESTS_SETTINGS_FILEPATH)
