import unittest, sys

testmodules = [
    'tests.unit',
    'tests.integration',
]

loader = unittest.TestLoader()

for t in testmodules:
    suite = loader.discover(t.replace('.', '/'), top_level_dir='.')

    result = unittest.TextTestRunner().run(suite)
    if not result.wasSuccessful():
        sys.exit(1)
