"""Prompt templates for the proposal pipeline.

All templates are filled with ``str.format``; literal JSON braces are doubled.
"""

MATERIALS_PARSING_PROMPT = """Ты — сверхточный ассистент по извлечению данных. Твоя задача — преобразовать предоставленный неупорядоченный текст в строгий JSON-массив. Каждая строка текста - отдельный товар. Каждый элемент массива должен быть объектом с полями "name" (строка) и "price" (число).

Правила:
- Извлекай цену как число, убирая "руб." и другие символы.
- Название товара — это всё, что находится до цены.
- Если в строке нет цены, игнорируй её.
- Не добавляй никаких комментариев или текста до и после JSON. Вывод должен быть только валидным JSON-массивом.

Вот текст для обработки:
---
{materials}
---"""


KEYWORDS_PROMPT = """Твоя задача — проанализировать запрос клиента для поиска товаров на складе и извлечь из него только самые важные, уникальные ключевые слова.

ПРАВИЛА:
1.  **ИЗВЛЕКАЙ СУЩНОСТЬ:** Выделяй только существительные, прилагательные и технические обозначения (артикулы, размеры).
2.  **ИГНОРИРУЙ МУСОР:** Полностью игнорируй количество ("10 штук", "12 метров"), единицы измерения ("мм"), предлоги, союзы ("и", "для") и любые разговорные фразы ("мне нужно", "пожалуйста").
3.  **ИСПРАВЛЯЙ ОПЕЧАТКИ:** Если видишь явную опечатку (например, "крыжка"), исправь ее ("крышка").
4.  **ФОРМАТ ОТВЕТА:** Верни ТОЛЬКО валидный JSON-объект с одним полем "keywords", которое содержит массив извлеченных слов в нижнем регистре. Никакого текста до или после JSON.

ПРИМЕР:
Запрос клиента: "Лоток перфорированый 100х100, 12 метров, и 10 гаек М10"
Твой ответ:
```json
{{
  "keywords": ["лоток", "перфорированный", "100х100", "гайка", "м10"]
}}
```

---
ЗАПРОС КЛИЕНТА ДЛЯ ОБРАБОТКИ:
"{query}"
---
ТВОЙ JSON-ОТВЕТ:
"""


PLANNING_PROMPT = """Ты — главный инженер по комплектации заказов. Твоя репутация зависит от того, насколько полно и правильно ты соберешь заказ для клиента.

**ТВОЯ ГЛАВНАЯ ЗАДАЧА:**
Проанализируй **цель клиента** и, используя предоставленный тебе **список РЕЛЕВАНТНЫХ товаров со склада**, составь **исчерпывающий список всего, что ему потребуется**.

-   Если цель — **конкретная деталь** ("Крышка 200 мм"), твой список должен состоять **только из этой детали**.
-   Если цель — **монтаж или сборка** ("комплект для монтажа короба 200х200"), твоя обязанность — включить в список **ВСЕ** необходимые для этого компоненты из предложенного каталога: сам короб, крышку, винты и гайки. Ты несешь ответственность за полноту комплекта.

**ПРАВИЛА ОФОРМЛЕНИЯ:**
-   Твой ответ — **ТОЛЬКО маркированный список** в формате '- Название, Количество'.
-   **ЗАПРЕЩЕНО:** Никаких заголовков, комментариев или пустых строк.

---
**Список релевантных товаров (выборка со склада):**
{products_json}

**Запрос (цель клиента):**
"{query}"
---
**Твой итоговый список комплектации:**
"""


FINAL_JSON_PROMPT = """Ты — ассистент по обработке данных. Твоя задача — на основе **плана комплектации** и **JSON-списка РЕЛЕВАНТНЫХ товаров** сгенерировать итоговый JSON.

**ПРАВИЛА:**
1.  **СТРОГО СЛЕДУЙ ПЛАНУ.** Включай в ответ только те позиции, которые упомянуты в плане.
2.  **ТОЧНОЕ СОПОСТАВЛЕНИЕ.** Найди в JSON-списке товары, которые максимально точно соответствуют описанию в плане.
3.  **ТОЛЬКО JSON.** Твой ответ должен быть только валидным JSON-объектом без лишних символов и комментариев.

**Формат ответа:**
```json
{{
  "found_items": [
    {{"id": 15, "quantity": 10}}
  ]
}}
```
---
**План для обработки:**
{plan}

**JSON-список релевантных товаров:**
{products_json}
---
"""
