import os
import tempfile
import unittest

from paths import PathEscapesRoot, canonical_root, resolve, url_path


class TestResolve(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.root = canonical_root(os.path.join(self.tmp.name, 'site'))
        os.makedirs(os.path.join(self.root, 'sub'))
        with open(os.path.join(self.root, 'sub', 'page.html'), 'w') as f:
            f.write('<p>page</p>')
        with open(os.path.join(self.tmp.name, 'secret.txt'), 'w') as f:
            f.write('secret')

    def tearDown(self):
        self.tmp.cleanup()

    def test_root(self):
        self.assertEqual(resolve('/', self.root), self.root)
        self.assertEqual(resolve('', self.root), self.root)

    def test_nested_file(self):
        self.assertEqual(
            resolve('/sub/page.html', self.root),
            os.path.join(self.root, 'sub', 'page.html'),
        )

    def test_missing_file_still_resolves(self):
        self.assertEqual(resolve('/nope.html', self.root), os.path.join(self.root, 'nope.html'))

    def test_inner_dotdot_stays_inside(self):
        self.assertEqual(resolve('/sub/../sub/page.html', self.root), os.path.join(self.root, 'sub', 'page.html'))

    def test_traversal_rejected(self):
        for request_path in ['/../secret.txt', '/sub/../../secret.txt', '/..', '../secret.txt', '/sub/../..']:
            with self.subTest(request_path=request_path):
                with self.assertRaises(PathEscapesRoot):
                    resolve(request_path, self.root)

    def test_leading_slashes_stay_inside(self):
        self.assertEqual(resolve('//etc/passwd', self.root), os.path.join(self.root, 'etc', 'passwd'))

    @unittest.skipIf(os.name == 'nt', 'symlinks need privileges on Windows')
    def test_symlink_escape_rejected(self):
        os.symlink(self.tmp.name, os.path.join(self.root, 'outside'))
        with self.assertRaises(PathEscapesRoot):
            resolve('/outside/secret.txt', self.root)

    @unittest.skipIf(os.name == 'nt', 'symlinks need privileges on Windows')
    def test_symlink_inside_root_allowed(self):
        os.symlink(os.path.join(self.root, 'sub'), os.path.join(self.root, 'alias'))
        self.assertEqual(resolve('/alias/page.html', self.root), os.path.join(self.root, 'sub', 'page.html'))

    def test_nul_rejected(self):
        with self.assertRaises(PathEscapesRoot):
            resolve('/a\x00b.html', self.root)

    @unittest.skipIf(os.name == 'nt', 'Windows file names are not raw bytes')
    def test_url_path_for_undecodable_name(self):
        path = os.path.join(self.root, os.fsdecode(b'bad\xff.txt'))
        self.assertEqual(url_path(path, self.root), '/bad%FF.txt')

    def test_url_path(self):
        self.assertEqual(url_path(self.root, self.root), '/')
        self.assertEqual(url_path(os.path.join(self.root, 'sub', 'a b.html'), self.root), '/sub/a%20b.html')


if __name__ == '__main__':
    unittest.main()
