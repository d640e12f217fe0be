"""
Tests for the shared pagination helpers.
"""

from __future__ import annotations

import pytest
from django.core.paginator import Paginator
from rest_framework import serializers
from rest_framework.request import Request
from rest_framework.test import APIRequestFactory

from core.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, page_params, page_payload


def make_request(**params):
    return Request(APIRequestFactory().get("/items/", params))


class NumberSerializer(serializers.Serializer):
    value = serializers.IntegerField()


class TestPageParams:
    def test_defaults(self):
        assert page_params(make_request()) == (1, DEFAULT_PAGE_SIZE)

    def test_explicit_values(self):
        assert page_params(make_request(page=3, page_size=5)) == (3, 5)

    def test_page_size_is_capped(self):
        assert page_params(make_request(page_size=1000)) == (1, MAX_PAGE_SIZE)

    @pytest.mark.parametrize("value", ["abc", "0", "-2", ""])
    def test_invalid_values_fall_back(self, value):
        assert page_params(make_request(page=value, page_size=value)) == (1, DEFAULT_PAGE_SIZE)


class TestPagePayload:
    def test_envelope(self):
        items = [{"value": number} for number in range(5)]
        page = Paginator(items, 2).get_page(2)

        payload = page_payload(page, NumberSerializer)

        assert payload["count"] == 5
        assert payload["page"] == 2
        assert payload["total_pages"] == 3
        assert payload["results"] == [{"value": 2}, {"value": 3}]
