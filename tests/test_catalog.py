"""
Category, subcategory and product tests
"""
import io

import pytest
from django.db import DataError

from apps.catalog import services
from apps.catalog.models import Category, CategorySubcategoryMap, Product, ProductVariant, Subcategory
from apps.core.exceptions import ConflictException, ResourceNotFoundException


def csv_upload(text, name='upload.csv'):
    upload = io.BytesIO(text.encode('utf-8'))
    upload.name = name
    return upload


class TestMappingHelpers:

    def test_add_rejects_duplicates(self, category, subcategory):
        services.add_subcategory_to_category(category, subcategory)

        with pytest.raises(ConflictException):
            services.add_subcategory_to_category(category, subcategory)

    def test_primary_flag_is_exclusive(self, category, subcategory):
        other = Category.objects.create(name='Office')
        services.add_subcategory_to_category(category, subcategory, is_primary=True)
        services.add_subcategory_to_category(other, subcategory, is_primary=True)

        primaries = CategorySubcategoryMap.objects.filter(subcategory=subcategory, is_primary=True)
        assert [m.category_id for m in primaries] == [other.id]

    def test_remove_missing_mapping_fails(self, category, subcategory):
        with pytest.raises(ResourceNotFoundException):
            services.remove_subcategory_from_category(category, subcategory)

    def test_removing_primary_promotes_another(self, category, subcategory):
        other = Category.objects.create(name='Office')
        services.add_subcategory_to_category(category, subcategory, is_primary=True)
        services.add_subcategory_to_category(other, subcategory)

        services.remove_subcategory_from_category(category, subcategory)

        assert CategorySubcategoryMap.objects.get(subcategory=subcategory).is_primary

    def test_subcategories_ordered_by_sort_order_then_name(self, category):
        for name, order in [('Zeta', 0), ('Alpha', 1), ('Beta', 0)]:
            services.add_subcategory_to_category(category, Subcategory.objects.create(name=name), sort_order=order)

        entries = services.get_subcategories_by_category(category)

        assert [e['subcategory'].name for e in entries] == ['Beta', 'Zeta', 'Alpha']

    def test_products_by_category_go_through_subcategories(self, category, subcategory, make_product):
        services.add_subcategory_to_category(category, subcategory)
        linked = make_product(name='Linked', sku='L-1')
        linked.subcategories.add(subcategory)
        make_product(name='Unrelated', sku='U-1')

        assert services.get_products_by_category(category) == [linked]


class TestDeleteCategory:

    def test_shared_subcategory_survives(self, category, subcategory):
        other = Category.objects.create(name='Office')
        exclusive = Subcategory.objects.create(name='Rugs')
        services.add_subcategory_to_category(category, subcategory, is_primary=True)
        services.add_subcategory_to_category(other, subcategory)
        services.add_subcategory_to_category(category, exclusive, is_primary=True)

        result = services.delete_category(category)

        assert result == {"deletedSubcategories": 1, "keptSubcategories": 1}
        assert Subcategory.objects.filter(pk=subcategory.pk).exists()
        assert not Subcategory.objects.filter(pk=exclusive.pk).exists()
        assert CategorySubcategoryMap.objects.get(subcategory=subcategory).is_primary

    def test_delete_endpoint(self, staff_client, category, subcategory):
        services.add_subcategory_to_category(category, subcategory)

        response = staff_client.delete(f'/api/categories/{category.id}')

        assert response.status_code == 200
        assert response.json()['deletedSubcategories'] == 1
        assert not Category.objects.exists()


class TestCategoryApi:

    def test_create_with_nested_subcategories(self, staff_client, staff):
        response = staff_client.post('/api/categories', {
            'name': 'Garden Tools',
            'subcategories': [{'name': 'Shovels'}, {'name': 'Hoses'}],
        }, format='json')

        assert response.status_code == 201
        body = response.json()['data']
        assert body['slug'] == 'garden-tools'
        assert sorted(s['name'] for s in body['subcategories']) == ['Hoses', 'Shovels']
        assert Category.objects.get().created_by == staff

    def test_update_replaces_nested_subcategories(self, staff_client, category):
        keep = Subcategory.objects.create(name='Keep')
        drop = Subcategory.objects.create(name='Drop')
        services.add_subcategory_to_category(category, keep)
        services.add_subcategory_to_category(category, drop)

        response = staff_client.put(f'/api/categories/{category.id}', {
            'subcategories': [{'id': str(keep.id)}, {'name': 'Fresh'}],
        }, format='json')

        assert response.status_code == 200
        names = sorted(s['name'] for s in response.json()['data']['subcategories'])
        assert names == ['Fresh', 'Keep']
        assert not Subcategory.objects.filter(pk=drop.pk).exists()

    def test_duplicate_slug_is_rejected(self, staff_client, category):
        response = staff_client.post('/api/categories', {'name': 'Other', 'slug': category.slug}, format='json')

        assert response.status_code == 400
        assert response.json()['error'] == 'Invalid request'

    def test_search_matches_subcategory_names(self, staff_client, category, subcategory):
        services.add_subcategory_to_category(category, subcategory)
        Category.objects.create(name='Garden')

        response = staff_client.get('/api/categories', {'search': 'light'})

        assert [c['name'] for c in response.json()['data']] == ['Home']

    def test_storefront_sees_only_published(self, api_client, category):
        Category.objects.create(name='Hidden', published=False)

        response = api_client.get('/api/categories')

        assert [c['name'] for c in response.json()['data']] == ['Home']

    def test_anonymous_cannot_create(self, api_client, db):
        response = api_client.post('/api/categories', {'name': 'Nope'}, format='json')

        assert response.status_code == 401

    def test_dropdown_all_includes_unpublished(self, staff_client, category):
        Category.objects.create(name='Hidden', published=False)

        default = staff_client.get('/api/categories/dropdown').json()['data']
        everything = staff_client.get('/api/categories/dropdown', {'all': 'true'}).json()['data']

        assert len(default) == 1
        assert len(everything) == 2

    def test_bulk_publish(self, staff_client, category):
        other = Category.objects.create(name='Office')

        response = staff_client.patch('/api/categories/bulk/publish', {
            'ids': [str(category.id), str(other.id)], 'published': False,
        }, format='json')

        assert response.json()['modifiedCount'] == 2
        assert not Category.objects.filter(published=True).exists()

    def test_toggle_published(self, staff_client, category):
        response = staff_client.patch(f'/api/categories/{category.id}/toggle-published')

        assert response.json()['data']['published'] is False

    def test_mapping_endpoints(self, staff_client, category, subcategory):
        created = staff_client.post(f'/api/categories/{category.id}/subcategories', {
            'subcategory_id': str(subcategory.id), 'is_primary': True,
        }, format='json')
        duplicate = staff_client.post(f'/api/categories/{category.id}/subcategories', {
            'subcategory_id': str(subcategory.id),
        }, format='json')
        listed = staff_client.get(f'/api/categories/{category.id}/subcategories')
        removed = staff_client.delete(f'/api/categories/{category.id}/subcategories/{subcategory.id}')

        assert created.status_code == 201
        assert duplicate.status_code == 409
        assert listed.json()['data'][0]['is_primary'] is True
        assert removed.status_code == 200
        assert not CategorySubcategoryMap.objects.exists()

    def test_subcategory_list_filters_by_category(self, staff_client, category, subcategory):
        services.add_subcategory_to_category(category, subcategory)
        Subcategory.objects.create(name='Unmapped')

        response = staff_client.get('/api/subcategories', {'category': str(category.id)})

        assert [s['name'] for s in response.json()['data']] == [subcategory.name]

    def test_subcategory_list_with_malformed_category_is_empty(self, staff_client, subcategory):
        Subcategory.objects.create(name='Unmapped')

        response = staff_client.get('/api/subcategories', {'category': 'not-a-uuid'})

        assert response.status_code == 200
        assert response.json()['data'] == []

    def test_export_csv(self, staff_client, category, subcategory):
        services.add_subcategory_to_category(category, subcategory)

        response = staff_client.get('/api/categories/export/csv')

        assert response.status_code == 200
        assert response['Content-Disposition'].startswith('attachment; filename="categories_')
        text = b''.join(response.streaming_content).decode()
        assert text.splitlines()[0].startswith('Name,Slug,Description')
        assert 'Lighting' in text

    def test_export_with_no_categories_is_404(self, staff_client):
        assert staff_client.get('/api/categories/export/json').status_code == 404

    def test_import_csv(self, staff_client, category):
        upload = csv_upload(
            "Name,Slug,Description,Subcategories\r\n"
            "Toys,toys,Fun things,Puzzles; Dolls\r\n"
            "Again,home,Duplicate slug,\r\n"
            ",missing-name,,\r\n"
        )

        response = staff_client.post('/api/categories/import/csv', {'file': upload}, format='multipart')

        body = response.json()
        assert response.status_code == 200
        assert body['imported'] == 1
        assert body['skipped'] == 2
        assert [e['row'] for e in body['errors']] == [3, 4]
        toys = Category.objects.get(slug='toys')
        assert sorted(toys.subcategories.values_list('name', flat=True)) == ['Dolls', 'Puzzles']


class TestProductStatus:

    @pytest.mark.parametrize('quantity,expected', [(0, 'out_of_stock'), (-3, 'out_of_stock'), (5, 'low_stock'),
                                                   (1, 'low_stock'), (6, 'selling')])
    def test_stock_status(self, quantity, expected):
        assert services.stock_status(quantity, 5) == expected

    def test_digital_products_always_sell(self, make_product):
        product = make_product(sku='D-1', product_type='digital', base_stock=0, status='draft')

        services.refresh_product_status(product)

        assert product.status == 'selling'

    def test_archived_products_keep_status(self, make_product):
        product = make_product(sku='A-1', base_stock=0, status='archived', published=False)

        services.refresh_product_status(product)

        assert product.status == 'archived'

    def test_variant_aggregation(self, make_product):
        product = make_product(sku='V-1', product_structure='variant', status='draft')
        ProductVariant.objects.create(product=product, name='Small', status='low_stock', published=True)
        ProductVariant.objects.create(product=product, name='Large', status='out_of_stock', published=True)

        services.refresh_product_status(product)
        assert product.status == 'low_stock'

        product.variants.update(status='out_of_stock')
        services.refresh_product_status(product)
        assert product.status == 'out_of_stock'

        product.variants.update(status='draft', published=False)
        services.refresh_product_status(product)
        assert (product.status, product.published) == ('draft', False)


class TestProductApi:

    def test_anonymous_only_sees_published(self, api_client, make_product):
        make_product(name='Visible', sku='V-1')
        make_product(name='Hidden', sku='H-1', published=False)

        response = api_client.get('/api/products', {'published': 'false'})

        assert [p['name'] for p in response.json()['data']] == ['Visible']

    def test_staff_sees_everything(self, staff_client, make_product):
        make_product(name='Visible', sku='V-1')
        make_product(name='Hidden', sku='H-1', published=False)

        response = staff_client.get('/api/products')

        assert response.json()['pagination']['items'] == 2

    def test_filter_by_category_slug(self, api_client, make_product, category, subcategory):
        services.add_subcategory_to_category(category, subcategory)
        lamp = make_product(name='Lamp', sku='L-1')
        lamp.subcategories.add(subcategory)
        make_product(name='Chair', sku='C-1')

        response = api_client.get('/api/products', {'category': category.slug})

        assert [p['name'] for p in response.json()['data']] == ['Lamp']

    def test_price_sort(self, api_client, make_product):
        make_product(name='Cheap', sku='C-1', price='5.00')
        make_product(name='Dear', sku='D-1', price='50.00')

        response = api_client.get('/api/products', {'priceSort': 'lowest-first'})

        assert [p['name'] for p in response.json()['data']] == ['Cheap', 'Dear']

    def test_detail_by_slug_and_id(self, api_client, product):
        by_slug = api_client.get(f'/api/products/{product.slug}')
        by_id = api_client.get(f'/api/products/{product.id}')

        assert by_slug.json()['data']['id'] == by_id.json()['data']['id'] == str(product.id)

    def test_unpublished_detail_hidden_from_storefront(self, api_client, make_product):
        hidden = make_product(sku='H-1', published=False)

        assert api_client.get(f'/api/products/{hidden.slug}').status_code == 404

    def test_create_with_variants(self, staff_client, category):
        response = staff_client.post('/api/products', {
            'name': 'Tee',
            'sku': 'TEE-1',
            'product_structure': 'variant',
            'selling_price': '12.00',
            'category_ids': [str(category.id)],
            'variants': [
                {'name': 'Tee S', 'sku': 'TEE-1-S', 'selling_price': '12.00', 'attributes': {'size': 'S'}},
                {'name': 'Tee M', 'sku': 'TEE-1-M', 'selling_price': '12.00', 'attributes': {'size': 'M'}},
            ],
        }, format='json')

        assert response.status_code == 201
        data = response.json()['data']
        assert len(data['variants']) == 2
        assert data['categories'][0]['slug'] == 'home'

    def test_variant_product_needs_variants(self, staff_client):
        response = staff_client.post('/api/products', {
            'name': 'Tee', 'product_structure': 'variant',
        }, format='json')

        assert response.status_code == 400

    def test_toggle_archive_round_trip(self, staff_client, product):
        archived = staff_client.patch(f'/api/products/{product.id}/toggle-archive').json()['data']
        product.refresh_from_db()
        assert archived['status'] == 'archived'
        assert product.published is False
        assert product.seo['robots'] == 'noindex,nofollow'

        restored = staff_client.patch(f'/api/products/{product.id}/toggle-archive').json()['data']
        assert restored == {'id': str(product.id), 'status': 'draft', 'published': False}

    def test_bulk_archive(self, staff_client, make_product):
        first = make_product(sku='B-1')
        second = make_product(sku='B-2')

        response = staff_client.patch('/api/products/bulk-archive', {
            'ids': [str(first.id), str(second.id)],
        }, format='json')

        assert response.json()['modifiedCount'] == 2
        assert set(Product.objects.values_list('status', flat=True)) == {'archived'}

    def test_bulk_delete(self, staff_client, make_product):
        first = make_product(sku='B-1')
        make_product(sku='B-2')

        response = staff_client.delete('/api/products/bulk', {'ids': [str(first.id)]}, format='json')

        assert response.status_code == 200
        assert Product.objects.count() == 1

    def test_export_csv_columns(self, staff_client, product):
        response = staff_client.get('/api/products/export/csv')

        header = b''.join(response.streaming_content).decode().splitlines()[0].split(',')
        assert len(header) == 24
        assert header[:3] == ['Product Name', 'Slug', 'SKU']

    def test_import_csv_skips_existing_sku(self, staff_client, product):
        upload = csv_upload(
            "Product Name,SKU,Selling Price,Stock,Published,Tags\n"
            "Kettle,KET-1,19.99,10,Yes,kitchen; steel\n"
            "Lamp again,LAMP-1,9.99,1,No,\n"
            "No sku,,1,1,No,\n"
        )

        response = staff_client.post('/api/products/import/csv', {'file': upload}, format='multipart')

        body = response.json()
        assert body['imported'] == 1
        assert body['skipped'] == 2
        assert [e['row'] for e in body['errors']] == [3, 4]
        kettle = Product.objects.get(sku='KET-1')
        assert kettle.published is True
        assert kettle.tags == ['kitchen', 'steel']

    def test_import_csv_reports_rows_the_database_rejects(self, staff_client, monkeypatch, db):
        original_save = Product.save

        def save(self, *args, **kwargs):
            if len(self.name) > 255:
                raise DataError("value too long for type character varying(255)")
            return original_save(self, *args, **kwargs)

        monkeypatch.setattr(Product, 'save', save)
        upload = csv_upload(
            "Product Name,SKU,Selling Price\n"
            "Kettle,KET-1,19.99\n"
            f"{'x' * 300},LONG-1,5\n"
            "Toaster,TOA-1,29.99\n"
        )

        response = staff_client.post('/api/products/import/csv', {'file': upload}, format='multipart')

        assert response.status_code == 200
        body = response.json()
        assert body['imported'] == 2
        assert body['skipped'] == 1
        assert body['errors'][0]['row'] == 3
        assert 'too long' in body['errors'][0]['error']
        assert set(Product.objects.values_list('sku', flat=True)) == {'KET-1', 'TOA-1'}

    def test_suggestions(self, api_client, product, category):
        response = api_client.get('/api/products/suggestions', {'query': 'lamp'})

        assert [s['type'] for s in response.json()['data']] == ['product']
