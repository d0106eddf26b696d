#!/usr/bin/env python3
import uvicorn
from stacks.app import app
from stacks.configs import OPTIONS

if __name__ == "__main__":
    print(f"Starting uvicorn server on port {OPTIONS['port']}...")
    uvicorn.run(app, host="0.0.0.0", port=OPTIONS['port'], log_level=OPTIONS['log_level'])
