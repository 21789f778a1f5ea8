"""
Capture listener - JavaScript injected into the recorded page.

The listener resolves each trusted event's target with the selector resolver
and hands the result to the Python side through an exposed binding.
"""

from flow_recorder.recorder.selectors import SELECTOR_RESOLVER_JS

BINDING_NAME = "__flowRecordAction"

# Keys worth recording on their own; plain typing arrives as input events
CAPTURED_KEYS = ("Enter", "Escape", "Tab")
SCROLL_DEBOUNCE_MS = 500

CAPTURE_SCRIPT = (
    r"""
(function() {
    if (window.__flowRecorderInstalled) return 'already-installed';
    window.__flowRecorderInstalled = true;
"""
    + SELECTOR_RESOLVER_JS
    + r"""
    function send(kind, selector, value) {
        try {
            if (window.__BINDING__) {
                window.__BINDING__(JSON.stringify({
                    kind: kind,
                    selector: selector || null,
                    value: value === undefined ? null : value
                }));
            }
        } catch (e) {
            console.warn('[Flow Recorder] Failed to send action:', e);
        }
    }

    function onClick(e) {
        if (!e.isTrusted || !e.target || !e.target.tagName) return;
        send('click', __flowResolveSelector(e.target));
    }

    function onInput(e) {
        const target = e.target;
        if (!e.isTrusted || !target || !target.tagName || target.tagName === 'SELECT') return;
        if (!('value' in target)) return;
        send('input', __flowResolveSelector(target), target.value);
    }

    function onChange(e) {
        if (!e.isTrusted || !e.target || e.target.tagName !== 'SELECT') return;
        send('select', __flowResolveSelector(e.target), e.target.value);
    }

    let scrollTimeout = null;
    function onScroll() {
        clearTimeout(scrollTimeout);
        scrollTimeout = setTimeout(function() {
            send('scroll', null, JSON.stringify({ x: window.scrollX, y: window.scrollY }));
        }, __SCROLL_DEBOUNCE__);
    }

    function onKeydown(e) {
        if (!e.isTrusted || __CAPTURED_KEYS__.indexOf(e.key) === -1) return;
        send('keypress', __flowResolveSelector(e.target), JSON.stringify({
            key: e.key,
            code: e.code,
            ctrlKey: e.ctrlKey,
            shiftKey: e.shiftKey,
            altKey: e.altKey,
            metaKey: e.metaKey
        }));
    }

    document.addEventListener('click', onClick, true);
    document.addEventListener('input', onInput, true);
    document.addEventListener('change', onChange, true);
    document.addEventListener('keydown', onKeydown, true);
    window.addEventListener('scroll', onScroll, true);

    window.__flowRecorderCleanup = function() {
        document.removeEventListener('click', onClick, true);
        document.removeEventListener('input', onInput, true);
        document.removeEventListener('change', onChange, true);
        document.removeEventListener('keydown', onKeydown, true);
        window.removeEventListener('scroll', onScroll, true);
        clearTimeout(scrollTimeout);
        delete window.__flowRecorderInstalled;
        delete window.__flowRecorderCleanup;
    };

    console.log('[Flow Recorder] Capture listener installed');
    return 'installed';
})()
"""
).replace("__BINDING__", BINDING_NAME).replace(
    "__SCROLL_DEBOUNCE__", str(SCROLL_DEBOUNCE_MS)
).replace(
    "__CAPTURED_KEYS__", "[" + ", ".join(f"'{k}'" for k in CAPTURED_KEYS) + "]"
)

UNINSTALL_SCRIPT = r"""
(function() {
    if (window.__flowRecorderCleanup) {
        window.__flowRecorderCleanup();
        console.log('[Flow Recorder] Capture listener removed');
        return true;
    }
    return false;
})()
"""
