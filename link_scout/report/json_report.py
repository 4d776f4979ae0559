# link_scout/report/json_report.py

"""
Генерация JSON-отчёта для проекта LinkScout.

Сериализация объекта ValidationReport: счётчики, гистограммы и все результаты.
Ошибки выводятся строками, длительности в миллисекундах.

Пример:
```python
from link_scout.report.json_report import format_json
Path('reports/report.json').write_text(format_json(report), encoding='utf-8')
```
"""
import json

from link_scout.aggregator import ValidationReport


def format_json(report: ValidationReport) -> str:
    """Возвращает отчёт в виде JSON с отступом 2."""
    return json.dumps(report.to_dict(), ensure_ascii=False, indent=2)
