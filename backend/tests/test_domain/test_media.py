"""
Unit tests for product media helpers and the Product model

Author: TM3
Date: 2026-03-02
"""
from pim.domain.media import drive_url_to_thumbnail, extract_folder_id, format_ncm
from pim.domain.product import Product, blank_product_fields


class TestDriveThumbnail:
    """Test drive_url_to_thumbnail"""

    def test_file_link(self):
        url = "https://drive.google.com/file/d/1AbC_d-9/view?usp=sharing"
        assert drive_url_to_thumbnail(url) == "https://drive.google.com/thumbnail?id=1AbC_d-9&sz=w400"

    def test_open_id_link(self):
        url = "https://drive.google.com/open?id=XYZ123"
        assert drive_url_to_thumbnail(url) == "https://drive.google.com/thumbnail?id=XYZ123&sz=w400"

    def test_googleusercontent_returned_as_is(self):
        url = "https://lh3.googleusercontent.com/abc=w400"
        assert drive_url_to_thumbnail(url) == url

    def test_drive_folder_is_not_an_image(self):
        assert drive_url_to_thumbnail("https://drive.google.com/drive/folders/abc") is None

    def test_plain_image_url(self):
        assert drive_url_to_thumbnail("https://cdn.example.com/a.jpg") == "https://cdn.example.com/a.jpg"

    def test_blank(self):
        assert drive_url_to_thumbnail("   ") is None
        assert drive_url_to_thumbnail(None) is None


class TestFolderAndNcm:
    """Test extract_folder_id and format_ncm"""

    def test_extract_folder_id(self):
        assert extract_folder_id("https://drive.google.com/drive/folders/abc123XYZ?usp=sharing") == "abc123XYZ"
        assert extract_folder_id("https://drive.google.com/file/d/abc/view") is None
        assert extract_folder_id("") is None

    def test_format_ncm(self):
        assert format_ncm("39241000") == "3924.10.00"
        assert format_ncm("3924.10.00") == "3924.10.00"
        assert format_ncm("1234") == "1234"
        assert format_ncm("") == "—"


class TestProductModel:
    """Test Product computed fields"""

    def test_to_dict_adds_computed_fields(self, sample_product_data):
        product = Product(id="p1", **sample_product_data)

        data = product.to_dict()

        assert data['ean_valid'] is True
        assert data['ncm_formatted'] == "3924.10.00"
        assert data['thumbnail_url'] == "https://drive.google.com/thumbnail?id=FILE123&sz=w400"

    def test_ean_valid_is_none_without_ean(self):
        assert Product(id="p1").ean_valid is None

    def test_ean_valid_false_for_bad_check_digit(self):
        assert Product(id="p1", ean="7891234567890").ean_valid is False

    def test_blank_product_fields_defaults(self):
        fields = blank_product_fields(name="X", unknown="ignored", sku=None)

        assert fields['name'] == "X"
        assert fields['sku'] == ""
        assert fields['origin'] == "076"
        assert 'unknown' not in fields
