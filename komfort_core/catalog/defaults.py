# =============================================================================
# komfort_core/catalog/defaults.py
# Built-in seed data used when neither Supabase nor the mirror has rows
# =============================================================================

from __future__ import annotations
from typing import List

from .models import (
    Category,
    ContactInfo,
    Coordinates,
    EntityId,
    HomepageSettings,
    Product,
    Shop,
    Slide,
    SocialLink,
)


def default_categories() -> List[Category]:
    return [
        Category(
            id=EntityId(1),
            title="Гостиная",
            image="/assets/livingroom.jpg",
            slug="gostinaya",
            description="Мебель для гостиной",
            order=1,
        ),
        Category(
            id=EntityId(2),
            title="Спальня",
            image="/assets/bedroom.jpg",
            slug="spalnya",
            description="Мебель для спальни",
            order=2,
        ),
        Category(
            id=EntityId(3),
            title="Кухня",
            image="/assets/kitchen.jpg",
            slug="kuhnya",
            description="Мебель для кухни",
            order=3,
        ),
    ]


def default_products() -> List[Product]:
    return [
        Product(
            id=EntityId(1),
            name='Диван "Комфорт"',
            description="Удобный диван для гостиной",
            price=29999,
            category_id=EntityId(1),
            category_name="Гостиная",
            image_urls=["assets/sofa1.jpg"],
            stock=5,
            features=["Раскладной", "Ткань - велюр"],
        ),
        Product(
            id=EntityId(2),
            name='Кровать "Орто"',
            description="Ортопедическая кровать",
            price=45999,
            category_id=EntityId(2),
            category_name="Спальня",
            image_urls=["assets/bed1.jpg"],
            stock=3,
            features=["Ортопедическое основание", "Ящики для белья"],
        ),
    ]


def default_shops() -> List[Shop]:
    return [
        Shop(
            id=EntityId(1),
            title="Главный магазин",
            address="г. Москва, ул. Примерная, д. 10",
            description="Крупнейший магазин сети с широким ассортиментом",
            image_url="/assets/shop1.jpg",
            phone="+7 (495) 123-45-67",
            email="main@komfort.ru",
            working_hours="Пн-Вс: 9:00-21:00",
            coordinates=Coordinates(lat=55.7558, lng=37.6176),
        ),
        Shop(
            id=EntityId(2),
            title="Филиал на Ленина",
            address="г. Москва, пр-т Ленина, д. 25",
            description="Магазин в центре города с демонстрационным залом",
            image_url="/assets/shop2.jpg",
            phone="+7 (495) 234-56-78",
            email="lenina@komfort.ru",
            working_hours="Пн-Сб: 10:00-20:00, Вс: 11:00-19:00",
            coordinates=Coordinates(lat=55.7547, lng=37.6206),
        ),
    ]


def default_slides() -> List[Slide]:
    slides = [
        ("assets/slide1.jpeg", "Все для вашего дома", "Широкий ассортимент мебели и товаров для дома"),
        ("assets/slide2.jpg", "Качество и надежность", "Только проверенные производители и материалы"),
        ("assets/slide3.jpeg", "Доступные цены", "Лучшее соотношение цены и качества на рынке"),
        ("assets/slide4.jpg", "Быстрая доставка", "Доставка по всей России в кратчайшие сроки"),
    ]
    return [
        Slide(id=EntityId(i), image=image, title=title, description=description, order=i)
        for i, (image, title, description) in enumerate(slides, start=1)
    ]


def default_contact_info() -> ContactInfo:
    return ContactInfo(
        id=EntityId(1),
        phone="+7 (938) 505-00-07",
        email="komfort.smm@mail.ru",
        office='г. Шелковская, ул. Косая, 47, ТД "Комфорт"',
        working_hours="Пн-Пт: 9:00-18:00, Сб: 10:00-16:00",
        map_embed="",
        social=[
            SocialLink(name="Instagram", url="https://www.instagram.com/td_komfort_shelk/", icon="IN"),
            SocialLink(name="Telegram", url="https://t.me/komfort_company", icon="TG"),
            SocialLink(name="WhatsApp", url="https://wa.me/78005553535", icon="WA"),
        ],
    )


def default_homepage_settings() -> HomepageSettings:
    return HomepageSettings(
        id=EntityId(1),
        title="Komfort - Мебель и товары для дома",
        description="Лучшие товары для вашего дома по доступным ценам",
    )
