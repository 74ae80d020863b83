"""
JavaScript snippets evaluated in the page.

Element snippets receive the element as their first argument (locator.evaluate).
"""

from __future__ import annotations

# Attributes read for one element during discovery / ambiguity enrichment.
DESCRIBE_ELEMENT_JS = """
(el) => {
    const attr = (name) => {
        const v = el.getAttribute(name);
        return v === null || v === '' ? null : v;
    };
    const text = (el.innerText || el.textContent || '').replace(/\\s+/g, ' ').trim();
    const cls = typeof el.className === 'string' ? el.className : (attr('class') || '');
    return {
        tag: (el.tagName || '').toLowerCase(),
        text: text.slice(0, 100),
        id: el.id || null,
        classes: cls.split(/\\s+/).filter(Boolean),
        testId: attr('data-testid'),
        ariaLabel: attr('aria-label'),
        role: attr('role'),
        type: attr('type'),
        href: attr('href'),
    };
}
"""

COMPUTED_STYLE_JS = """
(el, prop) => window.getComputedStyle(el).getPropertyValue(prop)
"""

VIEWPORT_JS = """
() => ({ width: window.innerWidth, height: window.innerHeight })
"""

LOCATION_JS = "() => window.location.href"
