import threading

from pygevcam.logger import logger


class CallbackQueue(dict):
    def __init__(self,*args,**kwargs):
        super().__init__(*args,**kwargs)
        self.lock = threading.Lock()

    def pop(self, key):
        """Like dict.pop but always returns None if key doesn't exist"""
        with self.lock:
            return super().pop(key, None)

    def __setitem__(self, __k, __v):
        """Locking setitem"""
        with self.lock:
            super().__setitem__(__k, __v)

    def __call__(self, cb_data):
        """Call every callback under the lock, callbacks that raise are dropped"""
        failed = []
        with self.lock:
            for fid,cb in self.items():
                try:
                    cb(cb_data)
                except Exception as e:
                    logger.exception(f"callback {fid} failed and was removed: {e}")
                    failed.append(fid)
        for key in failed:
            self.pop(key)


class CallbackThread:
    """Calls get_data in a loop on a daemon thread and hands the result to every callback

    Subclasses implement get_data, returning None means nothing to dispatch.
    stop_event is set while the thread is being stopped so get_data can wait
    on it instead of sleeping.
    """
    def __init__(self, name=None):
        self.name = name
        self.callbacks = CallbackQueue()
        self.stop_event = threading.Event()
        self._go = False
        self.thread = None

    def get_data(self):
        """Needs reimplementing in subclass"""
        raise NotImplementedError

    def run(self):
        while self._go:
            cb_data = self.get_data()
            if cb_data is not None and self._go:
                self.callbacks(cb_data)

    def is_running(self):
        return self.thread is not None

    def start_cb_thread(self):
        if self.thread is None:
            self._go = True
            self.stop_event.clear()
            self.thread = threading.Thread(target=self.run, name=self.name, daemon=True)
            self.thread.start()

    def stop_cb_thread(self):
        if self.thread is not None:
            self._go = False
            self.stop_event.set()
            # a callback may stop its own thread
            if self.thread is not threading.current_thread():
                self.thread.join()
            self.thread = None

    def register(self, func):
        fid = str(id(func))
        self.callbacks[fid] = func
        return fid
