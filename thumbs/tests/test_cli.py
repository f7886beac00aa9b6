"""Tests for CLI module."""

import io

import pytest
from PIL import Image

from thumbs.cli import cmd_render, create_parser, main, read_keys


@pytest.fixture
def image_root(tmp_path, landscape_jpeg):
    """Fixture providing a local image directory with one original."""
    root = tmp_path / 'images'
    (root / 'photos').mkdir(parents=True)
    (root / 'photos' / 'a.jpg').write_bytes(landscape_jpeg)
    return root


class TestCreateParser:
    """Tests for argument parser creation."""

    def test_render_command(self):
        parser = create_parser()
        args = parser.parse_args(['render', 'm200x200', 'in.jpg', '-o', 'out.jpg', '--quality', '60'])

        assert args.command == 'render'
        assert args.token == 'm200x200'
        assert args.input == 'in.jpg'
        assert args.output == 'out.jpg'
        assert args.quality == 60

    def test_warm_command(self):
        parser = create_parser()
        args = parser.parse_args(['warm', '-t', 'm100x100', '-t', 'cc50x50', '-n', 'a.jpg', 'b.jpg'])

        assert args.command == 'warm'
        assert args.token == ['m100x100', 'cc50x50']
        assert args.dry_run is True
        assert args.keys == ['a.jpg', 'b.jpg']

    def test_warm_requires_token(self):
        parser = create_parser()
        with pytest.raises(SystemExit):
            parser.parse_args(['warm', 'a.jpg'])

    def test_serve_command(self):
        parser = create_parser()
        args = parser.parse_args(['serve', '--port', '9000', '--image-root', 'imgs', '--upscale'])

        assert args.port == 9000
        assert args.image_root == 'imgs'
        assert args.upscale is True


class TestMain:
    """Tests for main entry point."""

    def test_no_command(self):
        """Test running without command shows help."""
        assert main([]) == 1


class TestCmdRender:
    """Tests for render command."""

    def test_render(self, image_root, tmp_path):
        output = tmp_path / 'out.png'

        result = main(['render', 'wcc100x100,ff0000,png', str(image_root / 'photos' / 'a.jpg'), '-o', str(output)])

        assert result == 0
        img = Image.open(io.BytesIO(output.read_bytes()))
        assert img.format == 'PNG'
        assert img.size == (100, 100)

    def test_bad_token(self, image_root, tmp_path):
        output = tmp_path / 'out.jpg'

        result = main(['render', 'zz100x100', str(image_root / 'photos' / 'a.jpg'), '-o', str(output)])

        assert result == 1
        assert not output.exists()

    def test_missing_input(self, tmp_path):
        parser = create_parser()
        args = parser.parse_args(['render', 'm10x10', str(tmp_path / 'missing.jpg'), '-o', str(tmp_path / 'o.jpg')])
        args.verbose = False

        assert cmd_render(args) == 1

    def test_quality_out_of_range(self, image_root, tmp_path):
        result = main([
            'render', 'm10x10', str(image_root / 'photos' / 'a.jpg'),
            '-o', str(tmp_path / 'o.jpg'), '--quality', '150'
        ])
        assert result == 1


class TestCmdWarm:
    """Tests for warm command."""

    def test_warm(self, image_root, tmp_path, capsys):
        thumbs_root = tmp_path / 'thumbs'

        result = main([
            'warm', '-t', 'm50x50',
            '--image-root', str(image_root), '--thumbs-root', str(thumbs_root),
            'photos/a.jpg'
        ])

        assert result == 0
        assert (thumbs_root / 'm50x50,ffffffff,q85,jpeg' / 'photos' / 'a.jpg').exists()
        assert 'Generated: 1' in capsys.readouterr().out

    def test_warm_with_errors(self, image_root, tmp_path):
        result = main([
            'warm', '-t', 'm50x50', '-q',
            '--image-root', str(image_root), '--thumbs-root', str(tmp_path / 'thumbs'),
            'photos/missing.jpg'
        ])
        assert result == 1

    def test_warm_without_keys(self, image_root, tmp_path):
        result = main([
            'warm', '-t', 'm50x50',
            '--image-root', str(image_root), '--thumbs-root', str(tmp_path / 'thumbs')
        ])
        assert result == 1

    def test_read_keys(self, tmp_path):
        keys_file = tmp_path / 'keys.txt'
        keys_file.write_text('# originals\nphotos/b.jpg\n\nphotos/c.png\n')
        args = create_parser().parse_args(['warm', '-t', 'm1x1', '--keys-file', str(keys_file), 'photos/a.jpg'])

        assert read_keys(args) == ['photos/a.jpg', 'photos/b.jpg', 'photos/c.png']


class TestCmdServe:
    """Tests for serve command."""

    def test_serve(self, image_root, tmp_path, mocker):
        mock_run = mocker.patch('thumbs.cli.run')

        result = main([
            'serve', '--port', '9001',
            '--image-root', str(image_root), '--thumbs-root', str(tmp_path / 'thumbs')
        ])

        assert result == 0
        kwargs = mock_run.call_args.kwargs
        assert kwargs['port'] == 9001
        assert kwargs['server'] == 'wsgiref'

    def test_invalid_config(self, mocker):
        mock_run = mocker.patch('thumbs.cli.run')

        assert main(['serve', '--quality', '150']) == 1
        mock_run.assert_not_called()
